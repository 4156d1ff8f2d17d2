"""Tests for balustrade detection, chaining and footprints."""

import pytest
from shapely.geometry import Polygon

from floormesh.fml_parser.elements import Balustrade, Item
from floormesh.fml_parser.spatial_utils import bbox_area, polygon_area
from floormesh.geometry.balustrades import (
    balustrade_fill_polygons,
    balustrade_strips,
    build_balustrade_chains,
    chain_edges,
    detect_balustrades,
    extend_balustrades,
)
from floormesh.geometry.tessellation import flatten_balustrades


@pytest.fixture
def u_shape():
    """Three railings forming a U open to the bottom."""
    return [
        Balustrade(id="left", a=(0.0, 0.0), b=(0.0, 100.0), thickness=10.0),
        Balustrade(id="top", a=(0.0, 100.0), b=(100.0, 100.0), thickness=10.0),
        Balustrade(id="right", a=(100.0, 100.0), b=(100.0, 0.0), thickness=10.0),
    ]


class TestDetectBalustrades:
    """Tests for railing inference from items."""

    def test_elongated_item_detected(self):
        item = Item(id="rail", x=100.0, y=50.0, width=200.0, height=10.0, z_height=100.0)
        result = detect_balustrades([item])
        assert len(result) == 1
        bal = result[0]
        assert bal.id == "item:rail"
        assert bal.a == pytest.approx((0.0, 50.0))
        assert bal.b == pytest.approx((200.0, 50.0))
        assert bal.thickness == 10.0
        assert bal.height == 100.0
        assert bal.detected is True

    def test_rotation_follows_item(self):
        item = Item(x=0.0, y=0.0, width=10.0, height=200.0, z_height=90.0, rotation=90.0)
        bal = detect_balustrades([item])[0]
        assert bal.a == pytest.approx((0.0, -100.0), abs=1e-9)
        assert bal.b == pytest.approx((0.0, 100.0), abs=1e-9)

    @pytest.mark.parametrize(
        "width,height,z_height",
        [
            (200.0, 10.0, 40.0),
            (200.0, 10.0, 130.0),
            (200.0, 25.0, 100.0),
            (40.0, 19.0, 100.0),
        ],
    )
    def test_non_railing_items_ignored(self, width, height, z_height):
        item = Item(width=width, height=height, z_height=z_height)
        assert detect_balustrades([item]) == []


class TestChains:
    """Tests for chain building."""

    def test_flipped_segment_joins_chain(self):
        bals = [
            Balustrade(id="a", a=(0.0, 0.0), b=(100.0, 0.0)),
            Balustrade(id="b", a=(200.0, 0.0), b=(100.0, 0.0)),
            Balustrade(id="c", a=(200.0, 0.0), b=(300.0, 0.0)),
        ]
        chains = build_balustrade_chains(bals)
        assert len(chains) == 1
        chain = chains[0]
        assert [link.balustrade.id for link in chain] == ["a", "b", "c"]
        assert [link.flipped for link in chain] == [False, True, False]
        for prev, nxt in zip(chain, chain[1:]):
            assert prev.end == nxt.start

    def test_chain_grows_backward_from_seed(self):
        bals = [
            Balustrade(id="mid", a=(100.0, 0.0), b=(200.0, 0.0)),
            Balustrade(id="first", a=(0.0, 0.0), b=(100.0, 0.0)),
            Balustrade(id="last", a=(200.0, 0.0), b=(300.0, 0.0)),
        ]
        chain = build_balustrade_chains(bals)[0]
        assert [link.balustrade.id for link in chain] == ["first", "mid", "last"]
        assert chain[0].start == (0.0, 0.0)

    def test_gap_within_tolerance(self):
        bals = [
            Balustrade(a=(0.0, 0.0), b=(100.0, 0.0)),
            Balustrade(a=(110.0, 0.0), b=(200.0, 0.0)),
        ]
        assert len(build_balustrade_chains(bals)) == 1
        assert len(build_balustrade_chains(bals, tolerance=5.0)) == 2

    def test_separate_chains(self):
        bals = [
            Balustrade(a=(0.0, 0.0), b=(100.0, 0.0)),
            Balustrade(a=(0.0, 500.0), b=(100.0, 500.0)),
        ]
        assert len(build_balustrade_chains(bals)) == 2

    def test_closed_loop_single_chain(self):
        corners = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)]
        bals = [Balustrade(id=str(i), a=corners[i], b=corners[(i + 1) % 4]) for i in range(4)]
        chains = build_balustrade_chains(bals)
        assert len(chains) == 1
        chain = chains[0]
        assert [link.balustrade.id for link in chain] == ["0", "1", "2", "3"]
        for prev, nxt in zip(chain, chain[1:]):
            assert prev.end == nxt.start
        assert chain[-1].end == chain[0].start

    def test_short_curve_links_in_drawing_order(self):
        curve = Balustrade(id="arc", a=(0.0, 0.0), b=(160.0, 0.0), c=(80.0, 40.0))
        chains = build_balustrade_chains(flatten_balustrades([curve]))
        assert len(chains) == 1
        assert [link.balustrade.id for link in chains[0]] == [f"arc:{i}" for i in range(16)]
        assert not any(link.flipped for link in chains[0])

    def test_short_curve_strip_is_simple(self):
        curve = Balustrade(a=(0.0, 0.0), b=(160.0, 0.0), c=(80.0, 40.0), thickness=10.0)
        strips = balustrade_strips(flatten_balustrades([curve]))
        assert len(strips) == 1
        assert len(strips[0]) == 34
        assert Polygon(strips[0]).is_valid

    def test_thick_joints_stay_in_one_chain(self):
        bals = [
            Balustrade(a=(0.0, 0.0), b=(100.0, 0.0), thickness=16.0),
            Balustrade(a=(100.0, 0.0), b=(200.0, 0.0), thickness=16.0),
            Balustrade(a=(200.0, 0.0), b=(200.0, 100.0), thickness=16.0),
        ]
        assert len(build_balustrade_chains(bals)) == 1
        assert len(balustrade_fill_polygons(bals)) == 2

    def test_empty(self):
        assert build_balustrade_chains([]) == []


class TestFootprints:
    """Tests for chain edges, strips and fills."""

    def test_edges_have_one_point_per_joint(self):
        bals = [
            Balustrade(a=(0.0, 0.0), b=(100.0, 0.0), thickness=10.0),
            Balustrade(a=(100.0, 0.0), b=(100.0, 100.0), thickness=10.0),
        ]
        left, right = chain_edges(build_balustrade_chains(bals)[0])
        assert len(left) == 3
        assert len(right) == 3
        assert left[0] == pytest.approx((0.0, 5.0))
        assert right[0] == pytest.approx((0.0, -5.0))

    def test_single_strip_area(self):
        strips = balustrade_strips([Balustrade(a=(0.0, 0.0), b=(100.0, 0.0), thickness=10.0)])
        assert len(strips) == 1
        assert len(strips[0]) == 4
        assert polygon_area(strips[0]) == pytest.approx(1000.0)

    def test_fill_needs_three_segments(self, u_shape):
        assert balustrade_fill_polygons(u_shape[:2]) == []
        fills = balustrade_fill_polygons(u_shape)
        assert len(fills) == 2
        assert bbox_area(fills[0]) > bbox_area(fills[1])
        assert bbox_area(fills[0]) == pytest.approx(110.0 * 105.0)


class TestExtendBalustrades:
    """Tests for endpoint extension."""

    def test_connected_ends_move_outward(self):
        bals = [
            Balustrade(a=(0.0, 0.0), b=(100.0, 0.0), thickness=10.0),
            Balustrade(a=(100.0, 0.0), b=(100.0, 100.0), thickness=20.0),
        ]
        extended = extend_balustrades(bals)
        assert extended[0].a == pytest.approx((0.0, 0.0))
        assert extended[0].b == pytest.approx((110.0, 0.0))
        assert extended[1].a == pytest.approx((100.0, -5.0))
        assert extended[1].b == pytest.approx((100.0, 100.0))

    def test_input_not_modified(self, u_shape):
        extend_balustrades(u_shape)
        assert u_shape[1].a == (0.0, 100.0)
        assert u_shape[1].b == (100.0, 100.0)
