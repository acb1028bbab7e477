"""
Rendering engine facade.

Owns the camera, scene, rendering parameters and simulation renderer, and
drives the backend for each requested frame.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .camera import Camera, CameraMirror, CameraType
from .parameters import RenderingParameters
from .render_engine import RenderBackend, RenderInput, RenderOutput
from .scene import Scene
from .simulation_renderer import RendererState, SimulationRenderer


logger = logging.getLogger(__name__)


class Engine:
    """
    Glue between the interactive loop and a ray-tracing backend.
    """

    def __init__(self, argv: Optional[Sequence[str]] = None,
                 backend: Optional[RenderBackend] = None,
                 scene: Optional[Scene] = None,
                 parameters: Optional[RenderingParameters] = None,
                 camera_type: CameraType = CameraType.PERSPECTIVE,
                 camera_mirror: Optional[CameraMirror] = None,
                 seed: Optional[int] = None):
        """
        Initialize engine.

        Args:
            argv: Process arguments, kept as given for backends that read them
            backend: Ray-tracing backend (None renders nothing)
            scene: Scene to render (default: empty unit scene)
            parameters: Rendering parameter store (normalized with clamp())
            camera_type: Projection model of the camera
            camera_mirror: Optional external camera state mirror
            seed: Seed for the per-frame random number
        """
        self.argv = list(argv) if argv is not None else []
        self.backend = backend
        self.scene = scene if scene is not None else Scene()
        self.parameters = (parameters if parameters is not None else RenderingParameters()).clamp()
        self.camera = Camera(camera_type, mirror=camera_mirror)
        self.renderer = SimulationRenderer(backend)
        self.frame_size = (0, 0)
        self._rng = np.random.default_rng(seed)
        # (depth_of_field, aperture, focal_length) last written to the camera
        self._lens: Optional[Tuple[bool, float, float]] = None

    def reshape(self, width: int, height: int):
        """Resize the frame; callers guarantee positive dimensions"""
        self.frame_size = (int(width), int(height))
        self.camera.set_aspect_ratio(width / height)
        if self.backend is not None:
            self.backend.reshape(width, height)

    def commit(self) -> RendererState:
        """Copy parameters, scene and transfer function into the renderer and commit it"""
        params = self.parameters
        scene = self.scene
        renderer = self.renderer

        renderer.set_param('bg_color', params.background_color)
        renderer.set_param('shadows', params.shadows)
        renderer.set_param('soft_shadows', params.soft_shadows)
        renderer.set_param('ambient_occlusion_strength', params.ambient_occlusion_strength)
        renderer.set_param('shading', params.light_shading)
        renderer.set_param('random_number', int(self._rng.integers(0, 2**31 - 1)))
        renderer.set_param('timestamp', params.timestamp)
        renderer.set_param('spp', params.spp)
        renderer.set_param('electron_shading', params.electron_shading)
        renderer.set_param('lights', scene.lights)
        renderer.set_param('materials', scene.materials)
        renderer.set_param('gradient_background', params.gradient_background)
        renderer.set_param('light_emitting_materials', params.light_emitting_materials)

        renderer.set_param('simulation_data', scene.simulation_data)

        tf = scene.transfer_function
        if tf is not None:
            renderer.set_param('transfer_function_diffuse_data', tf.diffuse)
            renderer.set_param('transfer_function_emission_data', tf.emission)
            renderer.set_param('transfer_function_size', tf.sample_count)
            renderer.set_param('transfer_function_min_value', tf.min_value)
            renderer.set_param('transfer_function_range', tf.range)
            if tf.threshold is not None:
                renderer.set_param('threshold', tf.threshold)
            else:
                renderer.remove_param('threshold')
        else:
            renderer.set_param('transfer_function_diffuse_data', None)
            renderer.set_param('transfer_function_emission_data', None)
            renderer.set_param('transfer_function_size', 0)
            renderer.set_param('transfer_function_min_value', 0.0)
            renderer.set_param('transfer_function_range', 0.0)
            renderer.remove_param('threshold')

        self._commit_lens()
        return renderer.commit()

    def _commit_lens(self):
        """
        Write the depth-of-field settings to the camera when they changed.

        Between changes the camera keeps whatever aperture its mirror last
        provided.
        """
        params = self.parameters
        lens = (params.depth_of_field, params.aperture, params.focal_length)
        if lens == self._lens:
            return
        self._lens = lens
        if params.depth_of_field:
            self.camera.set_aperture(params.aperture)
            self.camera.set_focal_length(params.focal_length)
        else:
            self.camera.set_aperture(0.0)

    def render(self, render_input: RenderInput, render_output: RenderOutput):
        """
        Render one frame synchronously into render_output.

        Args:
            render_input: Camera framing (target given as a direction)
            render_output: Buffers to fill
        """
        position = np.asarray(render_input.position, dtype=np.float32)
        self.camera.set(position, position + np.asarray(render_input.target, dtype=np.float32),
                        render_input.up)
        self.camera.refresh()
        self.commit()

        if self.backend is not None:
            self.backend.render(self.camera, render_output, self.parameters.frame_number)
        self.parameters.advance_frame()

    def get_world_bounds(self):
        return self.scene.get_world_bounds()

    def release(self):
        if self.backend is not None:
            self.backend.release()
