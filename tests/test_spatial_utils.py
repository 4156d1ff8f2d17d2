"""Tests for spatial utility functions."""

import numpy as np
import pytest
from floormesh.fml_parser.spatial_utils import (
    clean_ring,
    expand_polygon,
    offset_segment,
    point_in_polygon,
    points_in_ring,
    points_in_rings,
    polygon_area,
    project_onto_segment,
    signed_area,
    vertex_centroid,
)


class TestPointInPolygon:
    """Tests for point_in_polygon function."""

    def test_point_inside_square(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        assert point_in_polygon((2, 2), square) is True

    def test_point_outside_square(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        assert point_in_polygon((5, 5), square) is False

    def test_l_shaped_polygon(self):
        l_shape = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
        assert point_in_polygon((0.5, 0.5), l_shape) is True
        assert point_in_polygon((1.5, 1.5), l_shape) is False

    def test_shared_edge_counts_for_one_side_only(self):
        left = [(0, 0), (4, 0), (4, 4), (0, 4)]
        right = [(4, 0), (8, 0), (8, 4), (4, 4)]
        hits = [point_in_polygon((4, 2), left), point_in_polygon((4, 2), right)]
        assert hits.count(True) == 1

    def test_ray_through_vertex_counted_once(self):
        diamond = [(2, 0), (4, 2), (2, 4), (0, 2)]
        assert point_in_polygon((1, 2), diamond) is True
        assert point_in_polygon((-1, 2), diamond) is False


class TestVectorizedContainment:
    """Tests for the numpy ray casting helpers."""

    def test_matches_scalar_version(self):
        l_shape = [(0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2)]
        xs, ys = np.meshgrid(np.linspace(-0.5, 2.5, 13), np.linspace(-0.5, 2.5, 13))
        xs, ys = xs.ravel(), ys.ravel()
        expected = [point_in_polygon((x, y), l_shape) for x, y in zip(xs, ys)]
        assert points_in_ring(xs, ys, l_shape).tolist() == expected

    def test_hole_excluded(self):
        outer = [(0, 0), (10, 0), (10, 10), (0, 10)]
        hole = [(4, 4), (6, 4), (6, 6), (4, 6)]
        xs = np.array([1.0, 5.0, 11.0])
        ys = np.array([1.0, 5.0, 5.0])
        assert points_in_rings(xs, ys, [outer, hole]).tolist() == [True, False, False]

    def test_degenerate_ring_contains_nothing(self):
        xs = np.array([0.5])
        ys = np.array([0.5])
        assert not points_in_ring(xs, ys, [(0, 0), (1, 1)]).any()


class TestPolygonArea:
    """Tests for polygon_area and signed_area."""

    def test_rectangle(self):
        rect = [(0, 0), (4, 0), (4, 3), (0, 3)]
        assert polygon_area(rect) == pytest.approx(12.0)

    def test_triangle(self):
        tri = [(0, 0), (4, 0), (2, 3)]
        assert polygon_area(tri) == pytest.approx(6.0)

    def test_counterclockwise_is_positive(self):
        ccw = [(0, 0), (1, 0), (1, 1), (0, 1)]
        assert signed_area(ccw) > 0
        assert signed_area(list(reversed(ccw))) < 0

    def test_clockwise_same_as_counterclockwise(self):
        cw = [(0, 0), (0, 1), (1, 1), (1, 0)]
        ccw = [(0, 0), (1, 0), (1, 1), (0, 1)]
        assert polygon_area(cw) == pytest.approx(polygon_area(ccw))


class TestExpandPolygon:
    """Tests for centroid-based polygon expansion."""

    def test_square_grows(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        expanded = expand_polygon(square, 1.0)
        assert polygon_area(expanded) > polygon_area(square)

    def test_vertex_moves_away_from_centroid(self):
        square = [(0, 0), (4, 0), (4, 4), (0, 4)]
        expanded = expand_polygon(square, 1.0)
        x, y = expanded[0]
        assert x == pytest.approx(-(2 ** -0.5))
        assert y == pytest.approx(-(2 ** -0.5))

    def test_centroid_is_vertex_average(self):
        assert vertex_centroid([(0, 0), (4, 0), (4, 2), (0, 2)]) == (2.0, 1.0)


class TestRingHelpers:
    """Tests for ring cleanup, projection and segment offsets."""

    def test_clean_ring_drops_closing_point(self):
        ring = [(0, 0), (1, 0), (1, 1), (0, 0)]
        assert clean_ring(ring) == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]

    def test_clean_ring_drops_consecutive_duplicates(self):
        ring = [(0, 0), (1, 0), (1, 0), (1, 1)]
        assert len(clean_ring(ring)) == 3

    def test_project_onto_segment(self):
        t, dist = project_onto_segment((5, 3), (0, 0), (10, 0))
        assert t == pytest.approx(0.5)
        assert dist == pytest.approx(3.0)

    def test_projection_is_unclamped(self):
        t, _ = project_onto_segment((15, 0), (0, 0), (10, 0))
        assert t == pytest.approx(1.5)

    def test_offset_segment_corners(self):
        corners = offset_segment((0, 0), (10, 0), 5)
        assert corners == [(0, 5), (10, 5), (10, -5), (0, -5)]

    def test_offset_segment_too_short(self):
        assert offset_segment((0, 0), (0.05, 0), 5) == []
