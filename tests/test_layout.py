"""Tests for the pyramid layout engine."""

import copy

import pytest

from kintree.layout import (
    LayoutConfig,
    compute_auto_align_positions,
    compute_layout,
    connection_path,
    spouse_path,
)
from kintree.models import Position
from tests.conftest import _make_person, _marry


def _xy(result, person_id):
    pos = result.positions[person_id]
    return (pos.x, pos.y)


def _multi_spouse_family():
    p = _make_person("p", given_name="P")
    s1 = _make_person("s1", given_name="S1")
    s2 = _make_person("s2", given_name="S2")
    _marry(p, s1)
    _marry(p, s2)
    c1 = _make_person("c1", given_name="C1", parent_ids=["p", "s1"])
    c2 = _make_person("c2", given_name="C2", parent_ids=["p", "s2"])
    return [p, s1, s2, c1, c2]


class TestEmptyAndTiny:
    def test_empty_input(self):
        result = compute_layout([])
        assert result.positions == {}
        assert result.width == 800
        assert result.height == 600

    def test_empty_input_uses_configured_floor(self):
        result = compute_layout([], config=LayoutConfig(min_width=1024, min_height=768))
        assert (result.width, result.height) == (1024, 768)

    def test_single_person(self):
        result = compute_layout([_make_person("solo")])
        assert _xy(result, "solo") == (100, 100)
        assert result.generations == {"solo": 0}

    def test_couple_without_parents(self):
        a = _make_person("a")
        b = _make_person("b")
        _marry(a, b)
        result = compute_layout([a, b])

        assert result.generations == {"a": 0, "b": 0}
        assert result.positions["a"].y == result.positions["b"].y
        assert abs(result.positions["a"].x - result.positions["b"].x) == LayoutConfig.spouse_spacing
        assert _xy(result, "a") == (100, 100)
        assert _xy(result, "b") == (200, 100)


class TestPyramid:
    def test_nuclear_family(self, nuclear_family):
        result = compute_layout(nuclear_family)

        assert _xy(result, "anna") == (100, 280)
        assert _xy(result, "ben") == (280, 280)
        assert _xy(result, "dad") == (140, 100)
        assert _xy(result, "mom") == (240, 100)
        assert (result.width, result.height) == (800, 600)

    def test_parents_centred_over_children(self, nuclear_family):
        result = compute_layout(nuclear_family)
        couple_center = (result.positions["dad"].x + result.positions["mom"].x) / 2
        children_center = (result.positions["anna"].x + result.positions["ben"].x) / 2
        assert couple_center == children_center

    def test_siblings_ordered_by_given_name(self):
        parent = _make_person("parent")
        zed = _make_person("c1", given_name="zed", parent_ids=["parent"])
        amy = _make_person("c2", given_name="Amy", parent_ids=["parent"])
        result = compute_layout([parent, zed, amy])
        assert result.positions["c2"].x < result.positions["c1"].x

    def test_sibling_groups_are_separated(self):
        people = [
            _make_person("p", given_name="P"),
            _make_person("q", given_name="Q"),
            _make_person("c1", given_name="A", parent_ids=["p"]),
            _make_person("c2", given_name="B", parent_ids=["p"]),
            _make_person("c3", given_name="C", parent_ids=["q"]),
        ]
        config = LayoutConfig()
        result = compute_layout(people, config=config)

        assert result.positions["c1"].x == 100
        assert result.positions["c2"].x == 280
        assert result.positions["c3"].x == 520
        assert (
            result.positions["c3"].x - result.positions["c2"].x
            >= config.group_gap + config.horizontal_spacing
        )
        assert result.positions["p"].x == 190
        assert result.positions["q"].x == 520

    def test_married_in_spouse_trails_the_bottom_row(self):
        sibling = _make_person("sib", given_name="Sib", parent_ids=["r"])
        husband = _make_person("hus", given_name="Hus", parent_ids=["r"])
        wife = _make_person("wife", given_name="Wife")
        _marry(husband, wife)
        people = [_make_person("r", given_name="R"), sibling, husband, wife]
        result = compute_layout(people)

        # wife joins generation 1 through her husband but has no parents of her own
        assert result.generations["wife"] == 1
        assert _xy(result, "hus")[1] == _xy(result, "wife")[1]
        assert result.positions["hus"].x == 100
        assert result.positions["sib"].x == 280
        assert result.positions["wife"].x == 520

    def test_multi_spouse_cluster(self):
        result = compute_layout(_multi_spouse_family())

        assert result.positions["c1"].x == 100
        assert result.positions["c2"].x == 340
        assert result.positions["s1"].x == 120
        assert result.positions["p"].x == 220
        assert result.positions["s2"].x == 320

    def test_multi_spouse_cluster_does_not_overlap(self):
        result = compute_layout(_multi_spouse_family())
        xs = sorted(result.positions[pid].x for pid in ("p", "s1", "s2"))
        assert len(set(xs)) == 3

    def test_childless_unit_goes_to_right_edge(self):
        people = [
            _make_person("r", given_name="R"),
            _make_person("k", given_name="K", parent_ids=["r"]),
            _make_person("loner", given_name="Loner"),
        ]
        result = compute_layout(people)
        # loner is generation 0 with no children; placed after r
        assert result.positions["r"].x == 100
        assert result.positions["loner"].x == 280
        assert result.positions["loner"].y == 100

    def test_rows_follow_generations(self, extended_family):
        people = list(extended_family.values())
        config = LayoutConfig()
        result = compute_layout(people, config=config)

        for person_id, generation in result.generations.items():
            assert result.positions[person_id].y == config.canvas_padding + generation * config.vertical_spacing

    def test_no_row_has_overlapping_people(self, extended_family):
        people = list(extended_family.values())
        result = compute_layout(people)
        for generation in set(result.generations.values()):
            xs = sorted(result.positions[pid].x for pid, g in result.generations.items() if g == generation)
            assert all(b - a >= LayoutConfig.spouse_spacing for a, b in zip(xs, xs[1:])), generation
        coords = [_xy(result, pid) for pid in result.positions]
        assert len(set(coords)) == len(coords)

    def test_sibling_couples_are_pushed_apart(self):
        # x and y are siblings, each married with one child
        xs = _make_person("xs", given_name="Xs")
        x = _make_person("x", given_name="X", parent_ids=["g"])
        y = _make_person("y", given_name="Y", parent_ids=["g"])
        ys = _make_person("ys", given_name="Ys")
        _marry(xs, x)
        _marry(y, ys)
        people = [
            _make_person("g", given_name="G"),
            xs,
            x,
            y,
            ys,
            _make_person("cx", given_name="Cx", parent_ids=["x", "xs"]),
            _make_person("cy", given_name="Cy", parent_ids=["y", "ys"]),
        ]
        result = compute_layout(people)

        assert result.positions["cx"].x == 150
        assert result.positions["cy"].x == 390
        assert result.positions["xs"].x == 100
        assert result.positions["x"].x == 200
        assert result.positions["y"].x == 380
        assert result.positions["ys"].x == 480
        assert result.positions["y"].x - result.positions["x"].x >= LayoutConfig.horizontal_spacing
        assert result.positions["g"].x == 290

    def test_in_law_couples_above_one_marriage_do_not_overlap(self):
        g1a, g1b = _make_person("g1a"), _make_person("g1b")
        g2a, g2b = _make_person("g2a"), _make_person("g2b")
        a = _make_person("a", parent_ids=["g1a", "g1b"])
        b = _make_person("b", parent_ids=["g2a", "g2b"])
        _marry(g1a, g1b)
        _marry(g2a, g2b)
        _marry(a, b)
        people = [g1a, g1b, g2a, g2b, a, b, _make_person("c", parent_ids=["a", "b"])]
        result = compute_layout(people)

        assert _xy(result, "g1a") == (100, 100)
        assert _xy(result, "g1b") == (200, 100)
        assert _xy(result, "g2a") == (380, 100)
        assert _xy(result, "g2b") == (480, 100)
        assert _xy(result, "a") == (150, 280)
        assert _xy(result, "b") == (250, 280)
        assert _xy(result, "c") == (200, 460)
        coords = [_xy(result, pid) for pid in result.positions]
        assert len(set(coords)) == len(coords)

    def test_canvas_covers_every_node(self, extended_family):
        people = list(extended_family.values())
        result = compute_layout(people)
        for pos in result.positions.values():
            assert LayoutConfig.canvas_padding <= pos.x <= result.width - LayoutConfig.canvas_padding
            assert pos.y <= result.height - LayoutConfig.canvas_padding

    def test_custom_spacing(self, nuclear_family):
        config = LayoutConfig(horizontal_spacing=200, vertical_spacing=150, spouse_spacing=80)
        result = compute_layout(nuclear_family, config=config)
        assert _xy(result, "anna") == (100, 250)
        assert _xy(result, "ben") == (300, 250)
        assert _xy(result, "dad") == (160, 100)
        assert _xy(result, "mom") == (240, 100)


class TestDeterminism:
    def test_same_values_same_positions(self, extended_family):
        first = compute_layout(list(extended_family.values()))
        second = compute_layout(copy.deepcopy(list(extended_family.values())))
        assert first.positions == second.positions
        assert (first.width, first.height) == (second.width, second.height)

    def test_layout_nodes_match_positions(self, nuclear_family):
        result = compute_layout(nuclear_family)
        assert [node.id for node in result.nodes] == [p.id for p in nuclear_family]
        for node in result.nodes:
            assert node.computed_position == result.positions[node.id]
            assert node.generation == result.generations[node.id]


class TestManualPositions:
    def test_manual_position_wins(self, nuclear_family):
        nuclear_family[0].position = Position(500, 400)
        result = compute_layout(nuclear_family)
        assert _xy(result, "dad") == (500, 400)
        assert _xy(result, "mom") == (240, 100)

    def test_force_auto_align_ignores_manual_position(self, nuclear_family):
        nuclear_family[0].position = Position(500, 400)
        result = compute_layout(nuclear_family, force_auto_align=True)
        assert _xy(result, "dad") == (140, 100)

    def test_input_not_mutated(self, nuclear_family):
        nuclear_family[0].position = Position(500, 400)
        before = copy.deepcopy(nuclear_family)
        compute_layout(nuclear_family, force_auto_align=True)
        compute_layout(nuclear_family)
        assert nuclear_family == before

    def test_returned_positions_are_copies(self, nuclear_family):
        nuclear_family[0].position = Position(500, 400)
        result = compute_layout(nuclear_family)
        result.positions["dad"].x = 0
        assert nuclear_family[0].position == Position(500, 400)

    def test_left_of_padding_is_shifted_right(self, nuclear_family):
        nuclear_family[0].position = Position(20, 100)
        result = compute_layout(nuclear_family)
        assert result.positions["dad"].x == 100
        # everyone moves by the same amount
        assert result.positions["mom"].x == 320
        assert result.positions["anna"].x == 180

    def test_canvas_grows_with_manual_positions(self, nuclear_family):
        nuclear_family[0].position = Position(1500, 900)
        result = compute_layout(nuclear_family)
        assert result.width == 1600
        assert result.height == 1000

    def test_auto_align_positions(self, nuclear_family):
        nuclear_family[0].position = Position(500, 400)
        positions = compute_auto_align_positions(nuclear_family)
        assert positions["dad"] == Position(140, 100)
        assert set(positions) == {"dad", "mom", "anna", "ben"}


class TestMalformedInput:
    def test_dangling_references(self):
        people = [
            _make_person("a", parent_ids=["ghost"], spouse_ids=["missing"], child_ids=["nobody"]),
            _make_person("b", parent_ids=["a"]),
        ]
        result = compute_layout(people)
        assert set(result.positions) == {"a", "b"}
        assert result.generations == {"a": 0, "b": 1}

    def test_cyclic_input_still_lays_out(self):
        people = [
            _make_person("a", parent_ids=["b"]),
            _make_person("b", parent_ids=["a"]),
        ]
        result = compute_layout(people, config=LayoutConfig(max_passes=5))
        assert set(result.positions) == {"a", "b"}

    def test_duplicate_ids_keep_first_record(self):
        people = [_make_person("a", given_name="First"), _make_person("a", given_name="Second")]
        result = compute_layout(people)
        assert list(result.positions) == ["a"]
        assert result.nodes[0].person.given_name == "First"


class TestConnectorPaths:
    def test_connection_path(self):
        path = connection_path(Position(100, 100), Position(200, 280))
        assert path == "M 100 145 C 100 190, 200 190, 200 235"

    def test_connection_path_custom_radius(self):
        path = connection_path(Position(0, 0), Position(0, 100), node_radius=10)
        assert path == "M 0 10 C 0 50, 0 50, 0 90"

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            (Position(100, 100), Position(200, 100)),
            (Position(200, 100), Position(100, 100)),
        ],
    )
    def test_spouse_path_is_order_independent(self, first, second):
        assert spouse_path(first, second) == "M 145 100 L 155 100"

    def test_fractional_coordinates(self):
        assert spouse_path(Position(0.5, 10), Position(100, 10), node_radius=0) == "M 0.5 10 L 100 10"
