"""
Volume rendering pass: ray marching through the simulation volume.
"""

from typing import Optional

import moderngl as mgl
import numpy as np

from ..core.camera import Camera
from ..core.shader_manager import ShaderManager
from ..core.simulation_renderer import RendererState

# Full-screen triangle strip in normalized device coordinates
QUAD_VERTICES = np.array([
    -1.0, -1.0,
     1.0, -1.0,
    -1.0,  1.0,
     1.0,  1.0,
], dtype=np.float32)

MAX_STEPS = 1024


def set_uniform(program: mgl.Program, name: str, value):
    """Set a uniform if the compiled program still has it"""
    uniform = program.get(name, None)
    if uniform is None:
        return
    if isinstance(value, np.ndarray):
        uniform.write(np.ascontiguousarray(value, dtype=np.float32).tobytes())
    else:
        uniform.value = value


class VolumeRenderPass:
    """
    Ray-marching pass fed by a committed RendererState.

    Textures are rebuilt only when the committed buffers change identity.
    SimulationRenderer hands out the same buffer object until the source
    array is replaced.
    """

    def __init__(self, shader_manager: ShaderManager,
                 vertex_shader: str = "volume",
                 fragment_shader: str = "volume"):
        """
        Initialize volume render pass.

        Args:
            shader_manager: Shader manager instance (with a context set)
            vertex_shader: Name of vertex shader
            fragment_shader: Name of fragment shader
        """
        self.shader_manager = shader_manager
        self.vertex_shader = vertex_shader
        self.fragment_shader = fragment_shader

        self.program: Optional[mgl.Program] = None
        self.quad_vao: Optional[mgl.VertexArray] = None
        self.volume_texture: Optional[mgl.Texture3D] = None
        self.diffuse_texture: Optional[mgl.Texture] = None
        self.emission_texture: Optional[mgl.Texture] = None

        self._volume_source = None
        self._diffuse_source = None
        self._emission_source = None
        self._initialized = False

    def _initialize(self, ctx: mgl.Context):
        if self._initialized:
            return

        self.program = self.shader_manager.load_shader(self.vertex_shader, self.fragment_shader)
        vbo = ctx.buffer(QUAD_VERTICES.tobytes())
        self.quad_vao = ctx.vertex_array(self.program, [(vbo, '2f', 'in_position')])
        self._initialized = True

    def update(self, ctx: mgl.Context, state: RendererState):
        """Upload volume and transfer function buffers that changed since the last commit"""
        self._initialize(ctx)

        if state.simulation_data is not self._volume_source:
            self._release(self.volume_texture)
            self.volume_texture = None
            volume = state.simulation_data
            if volume is not None and volume.ndim == 3:
                nz, ny, nx = volume.shape
                self.volume_texture = ctx.texture3d((nx, ny, nz), 1, volume.tobytes(), dtype='f4')
                self.volume_texture.filter = (mgl.LINEAR, mgl.LINEAR)
                self.volume_texture.repeat_x = False
                self.volume_texture.repeat_y = False
                self.volume_texture.repeat_z = False
            self._volume_source = volume

        if state.transfer_function_diffuse_data is not self._diffuse_source:
            self.diffuse_texture = self._transfer_texture(
                ctx, self.diffuse_texture, state.transfer_function_diffuse_data, 4)
            self._diffuse_source = state.transfer_function_diffuse_data

        if state.transfer_function_emission_data is not self._emission_source:
            self.emission_texture = self._transfer_texture(
                ctx, self.emission_texture, state.transfer_function_emission_data, 1)
            self._emission_source = state.transfer_function_emission_data

    def _transfer_texture(self, ctx: mgl.Context, old: Optional[mgl.Texture],
                          data: Optional[np.ndarray], components: int) -> Optional[mgl.Texture]:
        self._release(old)
        if data is None or data.size == 0:
            return None
        samples = data.size // components
        texture = ctx.texture((samples, 1), components, data.tobytes(), dtype='f4')
        texture.filter = (mgl.LINEAR, mgl.LINEAR)
        texture.repeat_x = False
        texture.repeat_y = False
        return texture

    @staticmethod
    def _release(resource):
        if resource is not None:
            resource.release()

    @property
    def ready(self) -> bool:
        return (self.volume_texture is not None and self.diffuse_texture is not None
                and self.emission_texture is not None)

    def render(self, ctx: mgl.Context, camera: Camera, width: int, height: int,
               state: RendererState, bounds, frame_number: int = 0):
        """
        Execute volume rendering pass.

        Args:
            ctx: ModernGL context
            camera: Camera for view/projection matrices
            width: Viewport width
            height: Viewport height
            state: Committed renderer state
            bounds: (lower, upper) world-space box the volume fills
            frame_number: Accumulation frame index (jitters the ray start)
        """
        self._initialize(ctx)
        program = self.program

        view_matrix = camera.get_view_matrix()
        proj_matrix = camera.get_projection_matrix(width, height)
        inv_view_proj = np.linalg.inv(proj_matrix @ view_matrix)

        lower, upper = bounds
        light_dir = (state.lights[0].direction if state.lights else (-1.0, -1.0, 1.0))

        # GLSL matrices are column-major
        set_uniform(program, 'invViewProj', inv_view_proj.T)
        set_uniform(program, 'cameraPos', camera.get_position())
        set_uniform(program, 'boundsMin', np.asarray(lower, dtype=np.float32))
        set_uniform(program, 'boundsMax', np.asarray(upper, dtype=np.float32))
        set_uniform(program, 'hasSimulation', self.volume_texture is not None)
        set_uniform(program, 'hasTransferFunction', self.ready and state.has_transfer_function)
        set_uniform(program, 'bgColor', tuple(state.background_color))
        set_uniform(program, 'gradientBackground', state.gradient_background)
        set_uniform(program, 'shading', state.shading)
        set_uniform(program, 'shadows', state.shadows)
        set_uniform(program, 'softShadows', state.soft_shadows)
        set_uniform(program, 'electronShading', state.electron_shading)
        set_uniform(program, 'aoStrength', state.ambient_occlusion_strength)
        set_uniform(program, 'lightDir', tuple(float(c) for c in light_dir))
        set_uniform(program, 'stepCount', min(MAX_STEPS, 128 * max(state.spp, 1)))
        set_uniform(program, 'randomNumber', state.random_number)
        set_uniform(program, 'frameNumber', frame_number)
        set_uniform(program, 'tfSize', state.transfer_function_size)
        set_uniform(program, 'tfMinValue', state.transfer_function_min_value)
        set_uniform(program, 'tfRange', state.transfer_function_range)
        set_uniform(program, 'threshold', state.threshold)

        set_uniform(program, 'volumeTexture', 0)
        set_uniform(program, 'tfDiffuse', 1)
        set_uniform(program, 'tfEmission', 2)
        if self.volume_texture is not None:
            self.volume_texture.use(0)
        if self.diffuse_texture is not None:
            self.diffuse_texture.use(1)
        if self.emission_texture is not None:
            self.emission_texture.use(2)

        self.quad_vao.render(mgl.TRIANGLE_STRIP)

    def release(self):
        for resource in (self.volume_texture, self.diffuse_texture, self.emission_texture,
                         self.quad_vao):
            self._release(resource)
        self.volume_texture = self.diffuse_texture = self.emission_texture = None
        self.quad_vao = None
        self._volume_source = self._diffuse_source = self._emission_source = None
        self._initialized = False
