"""Tests for the polygon set engine."""

import pytest
from shapely.errors import GEOSException

from floormesh.fml_parser.spatial_utils import signed_area
from floormesh.geometry import polygon_ops
from floormesh.geometry.polygon_ops import (
    PolygonOpError,
    PolygonSetEngine,
    as_polygon_set,
    polygon_set_area,
)


def square(x, y, size):
    return [(x, y), (x + size, y), (x + size, y + size), (x, y + size)]


@pytest.fixture
def engine():
    return PolygonSetEngine()


class TestUnion:
    """Tests for PolygonSetEngine.union."""

    def test_overlapping_squares_merge(self, engine):
        result = engine.union(as_polygon_set([square(0, 0, 10), square(5, 5, 10)]))
        assert len(result) == 1
        assert polygon_set_area(result) == pytest.approx(175.0)

    def test_disjoint_squares_stay_apart(self, engine):
        result = engine.union(as_polygon_set([square(0, 0, 10), square(20, 0, 10)]))
        assert len(result) == 2

    def test_touching_squares_merge(self, engine):
        result = engine.union(as_polygon_set([square(0, 0, 10), square(10, 0, 10)]))
        assert len(result) == 1
        assert polygon_set_area(result) == pytest.approx(200.0)

    def test_closed_loop_produces_hole(self, engine):
        bars = [
            [(0, 0), (100, 0), (100, 10), (0, 10)],
            [(90, 0), (100, 0), (100, 100), (90, 100)],
            [(0, 90), (100, 90), (100, 100), (0, 100)],
            [(0, 0), (10, 0), (10, 100), (0, 100)],
        ]
        result = engine.union(as_polygon_set(bars))
        assert len(result) == 1
        assert len(result[0]) == 2
        assert polygon_set_area(result) == pytest.approx(100 * 100 - 80 * 80)

    def test_outer_rings_counterclockwise(self, engine):
        result = engine.union(as_polygon_set([square(0, 0, 10), list(reversed(square(20, 20, 5)))]))
        assert len(result) == 2
        for rings in result:
            assert signed_area(rings[0]) > 0

    def test_holes_clockwise(self, engine):
        result = engine.difference(
            as_polygon_set([square(0, 0, 30)]),
            as_polygon_set([[(10, 10), (10, 20), (20, 20), (20, 10)]]),
        )
        assert signed_area(result[0][0]) > 0
        assert signed_area(result[0][1]) < 0

    def test_no_closing_point(self, engine):
        result = engine.union(as_polygon_set([square(0, 0, 10)]))
        ring = result[0][0]
        assert ring[0] != ring[-1]

    def test_degenerate_input_dropped(self, engine):
        assert engine.union([[[(0, 0), (10, 0), (20, 0)]]]) == []
        assert engine.union([]) == []

    def test_bowtie_repaired(self, engine):
        bowtie = [(0, 0), (2, 2), (2, 0), (0, 2)]
        result = engine.union(as_polygon_set([bowtie]))
        assert polygon_set_area(result) == pytest.approx(2.0)
        assert engine.failures == 0


class TestDifference:
    """Tests for PolygonSetEngine.difference."""

    def test_hole_cut_out(self, engine):
        result = engine.difference(as_polygon_set([square(0, 0, 10)]), as_polygon_set([square(4, 4, 2)]))
        assert len(result) == 1
        assert len(result[0]) == 2
        assert polygon_set_area(result) == pytest.approx(96.0)

    def test_empty_subtrahend_returns_input(self, engine):
        polygons = as_polygon_set([square(0, 0, 10), square(20, 0, 10)])
        assert engine.difference(polygons, []) == polygons

    def test_void_outside_leaves_input(self, engine):
        result = engine.difference(as_polygon_set([square(0, 0, 10)]), as_polygon_set([square(50, 50, 10)]))
        assert len(result) == 1
        assert len(result[0]) == 1
        assert sorted(result[0][0]) == sorted(square(0, 0, 10))
        assert engine.failures == 0

    def test_full_cut_leaves_nothing(self, engine):
        assert engine.difference(as_polygon_set([square(2, 2, 2)]), as_polygon_set([square(0, 0, 10)])) == []

    def test_split_into_pieces(self, engine):
        result = engine.difference(
            as_polygon_set([[(0, 0), (30, 0), (30, 10), (0, 10)]]),
            as_polygon_set([[(10, -5), (20, -5), (20, 15), (10, 15)]]),
        )
        assert len(result) == 2
        assert polygon_set_area(result) == pytest.approx(200.0)


class TestFailures:
    """Tests for the pass-through fallback."""

    def test_failed_union_returns_input(self, engine, monkeypatch):
        def broken(geoms):
            raise GEOSException("TopologyException: side location conflict")

        monkeypatch.setattr(polygon_ops, "unary_union", broken)
        polygons = as_polygon_set([square(0, 0, 10), square(5, 5, 10)])
        result = engine.union(polygons)
        assert result == polygons
        assert engine.failures == 1

    def test_failed_difference_counts(self, engine, monkeypatch):
        def broken(geoms):
            raise GEOSException("TopologyException")

        monkeypatch.setattr(polygon_ops, "unary_union", broken)
        polygons = as_polygon_set([square(0, 0, 10)])
        result = engine.difference(polygons, as_polygon_set([square(4, 4, 2)]))
        assert result == polygons
        assert engine.failures == 1

    def test_strict_mode_raises(self, monkeypatch):
        def broken(geoms):
            raise GEOSException("TopologyException")

        monkeypatch.setattr(polygon_ops, "unary_union", broken)
        engine = PolygonSetEngine(strict=True)
        with pytest.raises(PolygonOpError):
            engine.union(as_polygon_set([square(0, 0, 10)]))
