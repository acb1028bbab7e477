"""
Unit tests for the Engine facade.

Run with: pytest tests/test_engine.py -v
"""

import numpy as np
import pytest

from rayscope.core.camera import SerializableCameraMirror
from rayscope.core.engine import Engine
from rayscope.core.parameters import MAX_FRAME_NUMBER, RenderingParameters
from rayscope.core.render_engine import RenderInput, RenderOutput
from rayscope.core.scene import Scene
from rayscope.core.transfer_function import TransferFunction


@pytest.fixture
def volume_scene():
    data = np.linspace(0.2, 0.8, 27, dtype=np.float32).reshape(3, 3, 3)
    tf = TransferFunction.from_colormap("viridis", sample_count=8, min_value=0.2, range=0.6)
    return Scene(simulation_data=data, transfer_function=tf)


class TestCommit:
    """Test parameter hand-off to the simulation renderer."""

    def test_threshold_defaults_to_min_value(self, backend, volume_scene):
        engine = Engine(backend=backend, scene=volume_scene)
        state = engine.commit()
        assert state.threshold == pytest.approx(0.2)
        assert state.transfer_function_size == 8
        assert state.transfer_function_range == pytest.approx(0.6)
        assert backend.commits[-1] is state

    def test_explicit_threshold_then_cleared(self, backend, volume_scene):
        volume_scene.transfer_function = volume_scene.transfer_function.with_threshold(0.5)
        engine = Engine(backend=backend, scene=volume_scene)
        assert engine.commit().threshold == pytest.approx(0.5)

        volume_scene.transfer_function = volume_scene.transfer_function.with_threshold(None)
        assert engine.commit().threshold == pytest.approx(0.2)

    def test_no_transfer_function_sends_none(self, backend):
        engine = Engine(backend=backend)
        state = engine.commit()
        assert state.transfer_function_diffuse_data is None
        assert state.transfer_function_emission_data is None
        assert state.simulation_data is None
        assert state.transfer_function_size == 0

    def test_parameters_copied(self, backend):
        params = RenderingParameters(background_color=(1, 1, 1), shadows=True,
                                     ambient_occlusion_strength=0.4, light_shading=False)
        state = Engine(backend=backend, parameters=params).commit()
        assert state.background_color == (1.0, 1.0, 1.0)
        assert state.shadows is True
        assert state.ambient_occlusion_strength == pytest.approx(0.4)
        assert state.shading is False

    def test_depth_of_field_sets_camera_aperture(self, backend):
        params = RenderingParameters(depth_of_field=True, aperture=0.2, focal_length=3.0)
        engine = Engine(backend=backend, parameters=params)
        engine.commit()
        assert engine.camera.get_aperture() == pytest.approx(0.2)
        assert engine.camera.get_focal_length() == pytest.approx(3.0)

        params.depth_of_field = False
        engine.commit()
        assert engine.camera.get_aperture() == 0.0

    def test_mirror_aperture_survives_unchanged_lens(self, backend):
        mirror = SerializableCameraMirror()
        engine = Engine(backend=backend, camera_mirror=mirror)
        engine.commit()

        mirror.update(aperture=0.3)
        engine.camera.refresh()
        engine.commit()
        assert engine.camera.get_aperture() == pytest.approx(0.3)

        engine.parameters.depth_of_field = True
        engine.commit()
        assert engine.camera.get_aperture() == pytest.approx(engine.parameters.aperture)

    def test_supplied_parameters_are_clamped(self, backend):
        params = RenderingParameters(spp=0, aperture=-1.0)
        engine = Engine(backend=backend, parameters=params)
        assert engine.parameters is params
        assert params.spp == 1
        assert engine.commit().spp == 1
        assert params.aperture == 0.0

    def test_float64_volume_keeps_identity_and_stays_writable(self, backend):
        data = np.linspace(0.0, 1.0, 8).reshape(2, 2, 2)
        engine = Engine(backend=backend, scene=Scene(simulation_data=data))
        first = engine.commit().simulation_data
        assert first.dtype == np.float32
        assert engine.commit().simulation_data is first

        data[0, 0, 0] = 5.0
        assert data.flags.writeable

    def test_float32_volume_not_frozen_for_caller(self, backend):
        data = np.zeros((2, 2, 2), dtype=np.float32)
        engine = Engine(backend=backend, scene=Scene(simulation_data=data))
        state = engine.commit()
        assert not state.simulation_data.flags.writeable
        data[0, 0, 0] = 1.0
        assert state.simulation_data[0, 0, 0] == 1.0


class TestRender:
    """Test frame requests."""

    def test_render_sets_camera_from_direction(self, engine, backend):
        render_input = RenderInput(position=np.array([0, 0, -2], dtype=np.float32),
                                   target=np.array([0, 0, 1], dtype=np.float32),
                                   up=np.array([0, 1, 0], dtype=np.float32))
        engine.render(render_input, RenderOutput(4, 4))
        position, target, frame_number = backend.renders[-1]
        np.testing.assert_array_equal(position, [0, 0, -2])
        np.testing.assert_array_equal(target, [0, 0, -1])
        assert frame_number == 0
        assert engine.parameters.frame_number == 1

    def test_frame_number_saturates(self, engine):
        engine.parameters.frame_number = MAX_FRAME_NUMBER
        engine.render(RenderInput(), RenderOutput(1, 1))
        assert engine.parameters.frame_number == MAX_FRAME_NUMBER

    def test_reshape_updates_camera_and_backend(self, engine, backend):
        engine.reshape(800, 600)
        assert engine.camera.get_aspect_ratio() == pytest.approx(800 / 600)
        assert backend.reshapes[-1] == (800, 600)

    def test_release(self, engine, backend):
        engine.release()
        assert backend.released is True


def test_world_bounds_from_scene():
    engine = Engine(scene=Scene(bounds_min=(0, 0, 0), bounds_max=(2, 4, 6)))
    lower, upper = engine.get_world_bounds()
    np.testing.assert_array_equal(lower, [0, 0, 0])
    np.testing.assert_array_equal(upper, [2, 4, 6])
