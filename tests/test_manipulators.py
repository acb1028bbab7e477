"""
Unit tests for the Inspect-Center and Flying manipulators.

Run with: pytest tests/test_manipulators.py -v
"""

import numpy as np
import pytest

from rayscope.manipulators import (
    Button,
    FlyingModeManipulator,
    InspectCenterManipulator,
    ManipulatorMode,
    Modifier,
    SpecialKey,
)
from rayscope.manipulators.base import camera_basis, rotate_vector


def _angle(a, b):
    cos = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))
    return float(np.arccos(np.clip(cos, -1.0, 1.0)))


def _drag(loop, button, start, end, modifiers=Modifier.NONE):
    loop.mouse_button(button, False, start, modifiers)
    loop.motion(end)
    loop.mouse_button(button, True, end, modifiers)


class TestHelpers:
    """Test vector helpers."""

    def test_rotate_vector_quarter_turn(self):
        rotated = rotate_vector(np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0]), np.pi / 2)
        np.testing.assert_allclose(rotated, [0.0, 0.0, -1.0], atol=1e-6)

    def test_basis_parallel_up_is_left_alone(self):
        up = np.array([0.0, 1.0, 0.0], dtype=np.float32)
        _, right, new_up = camera_basis(np.zeros(3, dtype=np.float32),
                                        np.array([0.0, 5.0, 0.0], dtype=np.float32), up)
        assert not np.any(right)
        np.testing.assert_array_equal(new_up, up)


class TestInspectCenter:
    """Test orbiting around the target."""

    def test_active_by_default(self, loop):
        assert isinstance(loop.manipulator, InspectCenterManipulator)
        assert loop.manipulator.active is True

    def test_horizontal_drag_is_azimuth_rotation(self, loop):
        before = loop.viewport.position - loop.viewport.target
        target = loop.viewport.target.copy()

        loop.mouse_button(Button.LEFT, False, (10, 10))
        loop.motion((50, 10))

        after = loop.viewport.position - loop.viewport.target
        assert _angle(before, after) == pytest.approx(40 * loop.rotate_speed, abs=1e-5)
        assert np.linalg.norm(after) == pytest.approx(np.linalg.norm(before), rel=1e-5)
        assert after[1] == pytest.approx(0.0, abs=1e-6)
        np.testing.assert_array_equal(loop.viewport.target, target)
        np.testing.assert_allclose(loop.viewport.up, [0, 1, 0], atol=1e-6)

    def test_drag_reaches_camera(self, loop):
        loop.mouse_button(Button.LEFT, False, (10, 10))
        loop.motion((50, 10))
        np.testing.assert_array_equal(loop.camera.get_position(), loop.viewport.position)
        assert loop.viewport.modified is False
        assert loop.redraw_requested is True

    def test_press_does_not_move_camera(self, loop):
        position = loop.viewport.position.copy()
        loop.mouse_button(Button.LEFT, False, (10, 10))
        loop.motion((10, 10))
        np.testing.assert_array_equal(loop.viewport.position, position)

    def test_motion_without_buttons_does_nothing(self, loop):
        position = loop.viewport.position.copy()
        loop.motion((100, 100))
        loop.motion((200, 150))
        np.testing.assert_array_equal(loop.viewport.position, position)

    def test_vertical_drag_is_elevation(self, loop):
        loop.mouse_button(Button.LEFT, False, (0, 0))
        loop.motion((0, 20))
        offset = loop.viewport.position - loop.viewport.target
        assert abs(offset[1]) == pytest.approx(2.0 * np.sin(20 * loop.rotate_speed), rel=1e-4)
        np.testing.assert_array_equal(loop.viewport.target, [0, 0, 0])

    def test_right_drag_zooms(self, loop):
        distance = np.linalg.norm(loop.viewport.position - loop.viewport.target)
        _drag(loop, Button.RIGHT, (0, 0), (0, 10))
        new_distance = np.linalg.norm(loop.viewport.position - loop.viewport.target)
        assert new_distance == pytest.approx(distance - 40 * loop.motion_speed, rel=1e-4)

    def test_ctrl_left_drag_zooms(self, loop):
        distance = np.linalg.norm(loop.viewport.position - loop.viewport.target)
        _drag(loop, Button.LEFT, (0, 0), (0, 10), Modifier.CTRL)
        new_distance = np.linalg.norm(loop.viewport.position - loop.viewport.target)
        assert new_distance < distance

    def test_zoom_keeps_minimum_distance(self, loop):
        loop.manipulator.zoom(1000.0)
        distance = np.linalg.norm(loop.viewport.position - loop.viewport.target)
        assert distance == pytest.approx(1e-3, rel=1e-3)

    @pytest.mark.parametrize("button,modifiers", [
        (Button.MIDDLE, Modifier.NONE),
        (Button.LEFT, Modifier.SHIFT),
    ])
    def test_pan_moves_position_and_target_together(self, loop, button, modifiers):
        offset = loop.viewport.position - loop.viewport.target
        _drag(loop, button, (0, 0), (30, 0), modifiers)
        np.testing.assert_allclose(loop.viewport.position - loop.viewport.target, offset,
                                   atol=1e-6)
        assert np.linalg.norm(loop.viewport.target) == pytest.approx(30 * loop.motion_speed,
                                                                     rel=1e-4)

    def test_arrow_key_rotates(self, loop):
        before = loop.viewport.position - loop.viewport.target
        loop.specialkey(SpecialKey.LEFT)
        after = loop.viewport.position - loop.viewport.target
        assert _angle(before, after) == pytest.approx(10 * loop.rotate_speed, abs=1e-5)

    def test_letter_key_rotates(self, loop):
        before = loop.viewport.position.copy()
        loop.keypress('d')
        assert not np.array_equal(before, loop.viewport.position)
        np.testing.assert_array_equal(loop.camera.get_position(), loop.viewport.position)

    def test_page_keys_zoom(self, loop):
        distance = np.linalg.norm(loop.viewport.position)
        loop.specialkey(SpecialKey.PAGE_UP)
        assert np.linalg.norm(loop.viewport.position) < distance


class TestFlying:
    """Test free-flight navigation."""

    @pytest.fixture
    def flying(self, loop):
        assert loop.switch_to(ManipulatorMode.FLYING)
        return loop

    def test_switch(self, flying):
        assert isinstance(flying.manipulator, FlyingModeManipulator)
        assert flying.manipulators[ManipulatorMode.INSPECT_CENTER].active is False

    def test_rotate_keeps_position(self, flying):
        position = flying.viewport.position.copy()
        flying.mouse_button(Button.LEFT, False, (10, 10))
        flying.motion((50, 10))
        np.testing.assert_array_equal(flying.viewport.position, position)
        direction = flying.viewport.target - flying.viewport.position
        assert _angle(direction, np.array([0, 0, 1])) == pytest.approx(40 * flying.rotate_speed,
                                                                       abs=1e-5)

    def test_forward_moves_both(self, flying):
        position = flying.viewport.position.copy()
        target = flying.viewport.target.copy()
        flying.specialkey(SpecialKey.UP)
        step = 10 * flying.motion_speed
        np.testing.assert_allclose(flying.viewport.position, position + [0, 0, step], atol=1e-6)
        np.testing.assert_allclose(flying.viewport.target, target + [0, 0, step], atol=1e-6)

    def test_w_and_s_cancel(self, flying):
        position = flying.viewport.position.copy()
        flying.keypress('w')
        flying.keypress('s')
        np.testing.assert_allclose(flying.viewport.position, position, atol=1e-6)

    def test_strafe_keeps_direction(self, flying):
        direction = flying.viewport.target - flying.viewport.position
        flying.keypress('a')
        np.testing.assert_allclose(flying.viewport.target - flying.viewport.position, direction,
                                   atol=1e-6)
        assert flying.viewport.position[0] != 0.0

    def test_drag_survives_switch(self, flying):
        flying.mouse_button(Button.LEFT, False, (10, 10))
        flying.switch_to(ManipulatorMode.INSPECT_CENTER)
        assert flying.pointer.is_pressed(Button.LEFT)
