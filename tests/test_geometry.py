import math

import pytest

from flame_maker.core.geometry import AffineTransformation, Point, Rectangle


class TestPoint:
    def test_polar_coordinates(self):
        p = Point(3.0, 4.0)
        assert p.r == 5.0
        assert p.theta == pytest.approx(math.atan2(4.0, 3.0))

    def test_origin(self):
        assert Point.ORIGIN == Point(0.0, 0.0)
        assert Point.ORIGIN.r == 0.0

    def test_points_are_immutable(self):
        with pytest.raises(AttributeError):
            Point(1.0, 2.0).x = 3.0


class TestRectangle:
    def test_bounds(self):
        rect = Rectangle(Point(1.0, -1.0), 4.0, 2.0)
        assert rect.left == -1.0
        assert rect.right == 3.0
        assert rect.bottom == -2.0
        assert rect.top == 0.0
        assert rect.aspect_ratio == 2.0

    @pytest.mark.parametrize("width,height", [(0.0, 1.0), (1.0, 0.0), (-1.0, 2.0)])
    def test_rejects_non_positive_dimensions(self, width, height):
        with pytest.raises(ValueError):
            Rectangle(Point.ORIGIN, width, height)

    def test_contains_is_half_open(self):
        rect = Rectangle(Point.ORIGIN, 2.0, 2.0)
        assert rect.contains(Point(-1.0, -1.0))
        assert rect.contains(Point(0.0, 0.0))
        assert not rect.contains(Point(1.0, 0.0))
        assert not rect.contains(Point(0.0, 1.0))
        assert not rect.contains(Point(1.0, 1.0))

    def test_contains_rejects_non_finite_points(self):
        rect = Rectangle(Point.ORIGIN, 2.0, 2.0)
        assert not rect.contains(Point(math.nan, 0.0))
        assert not rect.contains(Point(math.inf, 0.0))

    def test_expand_to_wider_aspect_ratio(self):
        rect = Rectangle(Point(1.0, 2.0), 2.0, 2.0).expand_to_aspect_ratio(2.0)
        assert rect == Rectangle(Point(1.0, 2.0), 4.0, 2.0)

    def test_expand_to_taller_aspect_ratio(self):
        rect = Rectangle(Point.ORIGIN, 4.0, 2.0).expand_to_aspect_ratio(1.0)
        assert rect == Rectangle(Point.ORIGIN, 4.0, 4.0)

    def test_expand_keeps_matching_rectangle(self):
        rect = Rectangle(Point.ORIGIN, 5.0, 4.0)
        assert rect.expand_to_aspect_ratio(1.25) == rect

    @pytest.mark.parametrize("ratio", [0.0, -1.5])
    def test_expand_rejects_non_positive_ratio(self, ratio):
        with pytest.raises(ValueError):
            Rectangle(Point.ORIGIN, 1.0, 1.0).expand_to_aspect_ratio(ratio)


class TestAffineTransformation:
    def test_identity_leaves_points_unchanged(self):
        p = Point(1.5, -2.5)
        assert AffineTransformation.IDENTITY.transform_point(p) == p

    def test_translation(self):
        t = AffineTransformation.new_translation(2.0, -1.0)
        assert t.transform_point(Point(1.0, 1.0)) == Point(3.0, 0.0)
        assert t.translation_x == 2.0
        assert t.translation_y == -1.0

    def test_scaling(self):
        t = AffineTransformation.new_scaling(2.0, 3.0)
        assert t.transform_point(Point(1.0, 1.0)) == Point(2.0, 3.0)

    def test_rotation(self):
        q = AffineTransformation.new_rotation(math.pi / 2).transform_point(Point(1.0, 0.0))
        assert q.x == pytest.approx(0.0, abs=1e-12)
        assert q.y == pytest.approx(1.0)

    def test_shears(self):
        assert AffineTransformation.new_shear_x(2.0).transform_point(Point(1.0, 1.0)) == Point(3.0, 1.0)
        assert AffineTransformation.new_shear_y(2.0).transform_point(Point(1.0, 1.0)) == Point(1.0, 3.0)

    def test_compose_coefficients(self):
        this = AffineTransformation(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
        that = AffineTransformation(7.0, 8.0, 9.0, 10.0, 11.0, 12.0)
        assert this.compose_with(that) == AffineTransformation(
            7 * 1 + 8 * 4, 7 * 2 + 8 * 5, 7 * 3 + 8 * 6 + 9,
            10 * 1 + 11 * 4, 10 * 2 + 11 * 5, 10 * 3 + 11 * 6 + 12)

    def test_compose_applies_receiver_first(self):
        translate = AffineTransformation.new_translation(1.0, 0.0)
        scale = AffineTransformation.new_scaling(2.0, 2.0)
        composed = translate.compose_with(scale)
        assert composed.transform_point(Point(1.0, 1.0)) == Point(4.0, 2.0)

    def test_compose_pivot_sequence(self):
        pivot = Point(1.0, 1.0)
        rotation = (AffineTransformation.new_translation(-pivot.x, -pivot.y)
                    .compose_with(AffineTransformation.new_rotation(math.pi))
                    .compose_with(AffineTransformation.new_translation(pivot.x, pivot.y)))
        fixed = rotation.transform_point(pivot)
        assert fixed.x == pytest.approx(1.0)
        assert fixed.y == pytest.approx(1.0)
        moved = rotation.transform_point(Point(2.0, 1.0))
        assert moved.x == pytest.approx(0.0, abs=1e-12)
        assert moved.y == pytest.approx(1.0)

    def test_compose_is_associative(self):
        a = AffineTransformation(0.3, -1.2, 0.5, 2.0, 0.7, -0.1)
        b = AffineTransformation.new_rotation(0.7)
        c = AffineTransformation(1.1, 0.2, -3.0, -0.4, 0.9, 1.5)
        left = a.compose_with(b).compose_with(c)
        right = a.compose_with(b.compose_with(c))
        for p in (Point(0.0, 0.0), Point(1.0, -2.0), Point(-3.5, 0.25)):
            lp = left.transform_point(p)
            rp = right.transform_point(p)
            assert lp.x == pytest.approx(rp.x)
            assert lp.y == pytest.approx(rp.y)

    def test_compose_with_identity(self):
        t = AffineTransformation(0.3, -1.2, 0.5, 2.0, 0.7, -0.1)
        assert t.compose_with(AffineTransformation.IDENTITY) == t
        assert AffineTransformation.IDENTITY.compose_with(t) == t
