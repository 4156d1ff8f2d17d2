"""Tests for junction detection and wall healing."""

import pytest

from floormesh.fml_parser.elements import Opening, Wall
from floormesh.geometry.junctions import JunctionIndex, is_diagonal
from floormesh.geometry.polygon_ops import polygon_set_area
from floormesh.geometry.tessellation import flatten_walls
from floormesh.geometry.wall_healing import (
    STRATEGY_EXTEND,
    WallHealer,
    endpoint_extensions,
    extend_wall,
    extend_walls,
    junction_fillers,
)


@pytest.fixture
def room_walls():
    """A closed 500 x 400 room of 20cm walls."""
    return [
        Wall(id="w0", a=(0.0, 0.0), b=(500.0, 0.0), thickness=20.0),
        Wall(id="w1", a=(500.0, 0.0), b=(500.0, 400.0), thickness=20.0),
        Wall(id="w2", a=(500.0, 400.0), b=(0.0, 400.0), thickness=20.0),
        Wall(id="w3", a=(0.0, 400.0), b=(0.0, 0.0), thickness=20.0),
    ]


class TestJunctionIndex:
    """Tests for junction clustering."""

    def test_l_junction(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(100.0, 0.0)),
            Wall(a=(100.0, 0.0), b=(100.0, 100.0)),
        ]
        junctions = JunctionIndex(walls).junctions()
        assert len(junctions) == 1
        assert junctions[0].wall_indices == [0, 1]
        assert {m.end for m in junctions[0].members} == {"a", "b"}

    def test_t_junction_interior_member(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(400.0, 0.0)),
            Wall(a=(200.0, 0.0), b=(200.0, 300.0)),
        ]
        junctions = JunctionIndex(walls).junctions()
        assert len(junctions) == 1
        interior = [m for m in junctions[0].members if m.end is None]
        assert len(interior) == 1
        assert interior[0].wall_index == 0
        assert interior[0].t == pytest.approx(0.5)

    def test_tolerance(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(400.0, 0.0)),
            Wall(a=(200.0, 4.0), b=(200.0, 300.0)),
        ]
        assert JunctionIndex(walls, tolerance=3.0).junctions() == []
        assert len(JunctionIndex(walls, tolerance=5.0).junctions()) == 1

    def test_arc_segments_do_not_join_regular_walls(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(100.0, 0.0)),
            Wall(a=(100.0, 0.0), b=(150.0, 50.0), is_arc_segment=True, arc_group=0),
        ]
        index = JunctionIndex(walls)
        assert index.junctions() == []
        assert index.neighbors_at(0, "b") == []

    def test_is_diagonal(self):
        assert is_diagonal(Wall(a=(0.0, 0.0), b=(100.0, 100.0)))
        assert not is_diagonal(Wall(a=(0.0, 0.0), b=(100.0, 0.0)))
        assert not is_diagonal(Wall(a=(0.0, 0.0), b=(100.0, 10.0)))


class TestExtensions:
    """Tests for endpoint extension amounts."""

    def test_l_junction_extends_by_half_thickness(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(500.0, 0.0), thickness=20.0),
            Wall(a=(500.0, 0.0), b=(500.0, 400.0), thickness=20.0),
        ]
        extensions = endpoint_extensions(walls, JunctionIndex(walls), [0, 1])
        assert extensions[0] == (0.0, pytest.approx(10.0))
        assert extensions[1] == (pytest.approx(10.0), 0.0)

    def test_shallow_angle_capped(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(500.0, 0.0), thickness=20.0),
            Wall(a=(500.0, 0.0), b=(599.0, 14.0), thickness=20.0),
        ]
        extensions = endpoint_extensions(walls, JunctionIndex(walls), [0])
        assert extensions[0][1] == pytest.approx(30.0)

    def test_near_parallel_not_extended(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(500.0, 0.0), thickness=20.0),
            Wall(a=(500.0, 0.0), b=(600.0, 5.0), thickness=20.0),
        ]
        extensions = endpoint_extensions(walls, JunctionIndex(walls), [0])
        assert extensions[0] == (0.0, 0.0)

    def test_extend_wall_keeps_opening_position(self):
        wall = Wall(a=(0.0, 0.0), b=(400.0, 0.0), openings=[Opening(t=0.5, width=90.0)])
        extended = extend_wall(wall, 20.0, 0.0)
        assert extended.a == pytest.approx((-20.0, 0.0))
        assert extended.b == pytest.approx((400.0, 0.0))
        center = extended.a[0] + extended.openings[0].t * extended.length
        assert center == pytest.approx(200.0)
        assert wall.openings[0].t == 0.5

    def test_extend_walls_closes_room_corners(self, room_walls):
        extended = extend_walls(room_walls)
        assert [w.length for w in extended] == pytest.approx([520.0, 420.0, 520.0, 420.0])
        assert extended[0].a == pytest.approx((-10.0, 0.0))
        assert room_walls[0].a == (0.0, 0.0)


class TestWallHealer:
    """Tests for the two healing strategies."""

    def test_room_union_is_single_ring_with_hole(self, room_walls):
        healed = WallHealer().heal(room_walls)
        assert len(healed.union_polygons) == 1
        assert len(healed.union_polygons[0]) == 2
        assert polygon_set_area(healed.union_polygons) == pytest.approx(520 * 420 - 480 * 380)
        assert healed.boxed_walls == []

    def test_input_walls_not_modified(self, room_walls):
        WallHealer().heal(room_walls)
        WallHealer(STRATEGY_EXTEND).heal(room_walls)
        assert room_walls[0].a == (0.0, 0.0)
        assert room_walls[0].b == (500.0, 0.0)

    def test_wall_with_opening_is_boxed(self, room_walls):
        room_walls[0].openings = [Opening(t=0.5)]
        healed = WallHealer().heal(room_walls)
        assert len(healed.boxed_walls) == 1
        boxed = healed.boxed_walls[0]
        assert boxed.a == pytest.approx((-10.0, 0.0))
        assert boxed.b == pytest.approx((510.0, 0.0))
        assert len(healed.footprints) == 4

    def test_extend_strategy_boxes_every_wall(self, room_walls):
        healed = WallHealer(STRATEGY_EXTEND).heal(room_walls)
        assert healed.union_polygons == []
        assert len(healed.boxed_walls) == 4
        assert healed.boxed_walls[0].a == pytest.approx((-10.0, 0.0))
        assert healed.boxed_walls[0].b == pytest.approx((510.0, 0.0))

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            WallHealer("miter")

    def test_diagonal_junction_gets_filler(self):
        walls = [
            Wall(a=(0.0, 0.0), b=(200.0, 0.0), thickness=20.0),
            Wall(a=(200.0, 0.0), b=(300.0, 100.0), thickness=20.0),
        ]
        assert len(junction_fillers(walls, JunctionIndex(walls))) == 1
        healed = WallHealer().heal(walls)
        assert len(healed.union_polygons) == 1
        assert len(healed.footprints) == 3
        assert len(WallHealer(STRATEGY_EXTEND).heal(walls).fillers) == 1

    def test_curved_wall_joints_filled(self):
        walls = flatten_walls([Wall(a=(0.0, 0.0), b=(400.0, 0.0), c=(200.0, 200.0), thickness=20.0)])
        assert len(junction_fillers(walls, JunctionIndex(walls))) == 15
        healed = WallHealer().heal(walls)
        assert len(healed.union_polygons) == 1

    def test_zero_length_walls_skipped(self, room_walls):
        room_walls.append(Wall(a=(50.0, 50.0), b=(50.0, 50.0)))
        healed = WallHealer().heal(room_walls)
        assert len(healed.union_polygons) == 1
