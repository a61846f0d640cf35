"""
Tests for crop geometry.

Run with: pytest tests/test_face_geometry.py -v
"""
import pytest

from domain.models import BoundingBox, CropRectangle
from services.face_geometry import DPI, HEAD_SCALE, center, crop_rectangle, output_size


class TestCenter:

    def test_center_of_box(self):
        assert center(BoundingBox(10, 20, 100, 50)) == (60.0, 45.0)

    def test_matches_box_property(self):
        box = BoundingBox(3, 7, 11, 13)
        assert center(box) == box.center


class TestCropRectangle:

    def test_scales_around_center(self):
        rect = crop_rectangle(BoundingBox(100, 100, 100, 100), scale=1.5)
        assert rect == CropRectangle(x=75.0, y=75.0, width=150.0, height=150.0)

    def test_default_scale_is_head_scale(self):
        box = BoundingBox(100, 100, 40, 60)
        assert crop_rectangle(box) == crop_rectangle(box, HEAD_SCALE)

    def test_clamps_origin_at_zero(self):
        # scaled box would start at (-5, -10)
        rect = crop_rectangle(BoundingBox(5, 0, 20, 20), scale=1.5)
        assert rect.x == 0
        assert rect.y == 0
        # size stays scaled even though the origin moved
        assert rect.width == 30
        assert rect.height == 30

    def test_origin_never_negative_for_boxes_at_edge(self):
        for x, y in [(0, 0), (1, 0), (0, 1), (2.5, 3.5)]:
            rect = crop_rectangle(BoundingBox(x, y, 50, 80), scale=3.0)
            assert rect.x >= 0 and rect.y >= 0

    def test_no_upper_clamp(self):
        # box near bottom-right of a hypothetical 100x100 image
        rect = crop_rectangle(BoundingBox(80, 80, 20, 20), scale=2.0)
        assert rect.x + rect.width == 110
        assert rect.y + rect.height == 110

    def test_rejects_non_positive_scale(self):
        with pytest.raises(ValueError):
            crop_rectangle(BoundingBox(0, 0, 10, 10), scale=0)


class TestOutputSize:

    def test_explicit_inches_win(self):
        rect = CropRectangle(0, 0, 37.5, 512.0)
        spec = output_size(rect, width_inch=2, height_inch=3)
        assert (spec.width, spec.height) == (192, 288)

    def test_falls_back_to_crop_dimensions(self):
        spec = output_size(CropRectangle(0, 0, 150, 90))
        assert (spec.width, spec.height) == (150, 90)

    def test_width_only(self):
        spec = output_size(CropRectangle(0, 0, 150, 90), width_inch=1)
        assert (spec.width, spec.height) == (DPI, 90)

    def test_height_only(self):
        spec = output_size(CropRectangle(0, 0, 150, 90), height_inch=0.5)
        assert (spec.width, spec.height) == (150, 48)

    def test_zero_inches_treated_as_unset(self):
        spec = output_size(CropRectangle(0, 0, 150, 90), width_inch=0, height_inch=0)
        assert (spec.width, spec.height) == (150, 90)

    def test_fractional_pixels_truncate(self):
        spec = output_size(CropRectangle(0, 0, 150.9, 90.2), width_inch=1.01)
        assert (spec.width, spec.height) == (96, 90)

    def test_custom_dpi(self):
        spec = output_size(CropRectangle(0, 0, 10, 10), width_inch=2, height_inch=1, dpi=300)
        assert (spec.width, spec.height) == (600, 300)


class TestBoundingBoxValidation:

    def test_negative_origin_rejected(self):
        with pytest.raises(ValueError):
            BoundingBox(-1, 0, 10, 10)

    def test_zero_size_rejected(self):
        with pytest.raises(ValueError):
            BoundingBox(0, 0, 0, 10)
