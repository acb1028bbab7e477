"""
Unit tests for RenderingParameters.

Run with: pytest tests/test_parameters.py -v
"""

import pytest

from rayscope.core.parameters import MAX_FRAME_NUMBER, RenderingParameters


class TestRenderingParameters:
    """Test clamping at the store."""

    @pytest.mark.parametrize("value,expected", [(-0.5, 0.0), (0.3, 0.3), (1.7, 1.0)])
    def test_ambient_occlusion_clamped(self, value, expected):
        params = RenderingParameters(ambient_occlusion_strength=value)
        assert params.ambient_occlusion_strength == pytest.approx(expected)

    def test_frame_number_saturates(self):
        params = RenderingParameters(frame_number=MAX_FRAME_NUMBER)
        params.advance_frame()
        assert params.frame_number == MAX_FRAME_NUMBER

    def test_frame_number_advances(self):
        params = RenderingParameters()
        params.advance_frame()
        params.advance_frame()
        assert params.frame_number == 2

    def test_background_is_float_tuple(self):
        params = RenderingParameters(background_color=[1, 0, 0])
        assert params.background_color == (1.0, 0.0, 0.0)

    def test_clamp_normalizes_fields(self):
        params = RenderingParameters(spp=0, aperture=-1.0)
        params.shadows = 1
        params.clamp()
        assert params.spp == 1
        assert params.aperture == 0.0
        assert params.shadows is True
