"""
Unit tests for Viewport.

Run with: pytest tests/test_viewport.py -v
"""

import numpy as np
import pytest

from rayscope.core.viewport import Viewport, viewport_from_bounds


class TestViewport:
    """Test modified-flag bookkeeping."""

    def test_starts_modified(self):
        assert Viewport().modified is True

    def test_unchanged_vector_keeps_flag_clear(self):
        vp = Viewport()
        vp.clear_modified()
        vp.set_position((0, 0, -1))
        vp.set_target((0, 0, 0))
        vp.set_up((0, 1, 0))
        assert vp.modified is False

    def test_changed_vector_sets_flag(self):
        vp = Viewport()
        vp.clear_modified()
        vp.set_target((1, 0, 0))
        assert vp.modified is True
        np.testing.assert_array_equal(vp.get_direction(), [1, 0, 1])

    def test_aspect_does_not_mark_modified(self):
        vp = Viewport()
        vp.clear_modified()
        vp.set_aspect(2.0)
        assert vp.aspect == 2.0
        assert vp.modified is False


class TestViewportFromBounds:
    """Test framing of world bounds."""

    def test_unit_cube(self):
        vp, motion_speed = viewport_from_bounds((-1, -1, -1), (1, 1, 1))
        np.testing.assert_allclose(vp.target, [0, 0, 0])
        np.testing.assert_allclose(vp.position, [0, 0, -2])
        np.testing.assert_array_equal(vp.up, [0, 1, 0])
        assert motion_speed == pytest.approx(np.sqrt(12.0) * 0.001, rel=1e-5)

    def test_flat_box_is_widened(self):
        vp, _ = viewport_from_bounds((0, 0, 0), (10, 10, 0))
        # Zero depth is widened to 0.3 * |diag|
        assert vp.position[2] == pytest.approx(-0.3 * np.sqrt(200.0), rel=1e-5)
        np.testing.assert_allclose(vp.target, [5, 5, 0])
