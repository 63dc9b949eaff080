"""Tests for activation ordering of a resolved selection."""

from __future__ import annotations

from modresolver.core.dependency import activation_order, requirement_edges
from tests.helpers import make_candidate


class TestRequirementEdges:
    """Tests for ``requirement_edges``."""

    def test_edges_point_at_selected_providers(self) -> None:
        impl = make_candidate("impl", provides=("api",), index=0)
        a = make_candidate("a", depends={"api": "*", "absent": "*"}, index=1)
        edges = requirement_edges([impl, a])
        assert edges[a] == (impl,)
        assert edges[impl] == ()

    def test_self_edges_dropped(self) -> None:
        a = make_candidate("a", provides=("alias",), depends={"alias": "*"})
        assert requirement_edges([a])[a] == ()


class TestActivationOrder:
    """Tests for ``activation_order``."""

    def test_independent_mods_keep_discovery_order(self) -> None:
        mods = [make_candidate(name, index=i) for i, name in enumerate("cab")]
        order = activation_order(reversed(mods))
        assert [m.id for m in order.mods] == ["c", "a", "b"]
        assert order.complete

    def test_dependencies_first(self) -> None:
        a = make_candidate("a", depends={"b": "*", "c": "*"}, index=0)
        b = make_candidate("b", depends={"c": "*"}, index=1)
        c = make_candidate("c", index=2)
        order = activation_order([a, b, c])
        assert order.mods == (c, b, a)

    def test_ties_broken_by_discovery_index(self) -> None:
        base = make_candidate("base", index=3)
        x = make_candidate("x", depends={"base": "*"}, index=2)
        y = make_candidate("y", depends={"base": "*"}, index=1)
        order = activation_order([x, y, base])
        assert [m.id for m in order.mods] == ["base", "y", "x"]

    def test_cycle_reported(self) -> None:
        a = make_candidate("a", depends={"b": "*"}, index=0)
        b = make_candidate("b", depends={"c": "*"}, index=1)
        c = make_candidate("c", depends={"a": "*"}, index=2)
        free = make_candidate("free", index=3)
        order = activation_order([a, b, c, free])
        assert not order.complete
        assert order.cycles == ((a, b, c),)
        assert order.mods == (free,)
        assert order.warnings == ()

    def test_dependent_of_cycle_left_unordered(self) -> None:
        a = make_candidate("a", depends={"b": "*"}, index=0)
        b = make_candidate("b", depends={"a": "*"}, index=1)
        user = make_candidate("user", depends={"a": "*"}, index=2)
        order = activation_order([a, b, user])
        assert order.cycles == ((a, b),)
        assert order.mods == ()

    def test_break_cycles(self) -> None:
        a = make_candidate("a", depends={"b": "*"}, index=0)
        b = make_candidate("b", depends={"a": "*"}, index=1)
        user = make_candidate("user", depends={"a": "*"}, index=2)
        order = activation_order([user, b, a], break_cycles=True)
        assert order.complete
        assert order.mods == (a, b, user)
        assert order.warnings == (
            "Requirement cycle a 1.0 -> b 1.0 -> a 1.0 broken at a 1.0",
        )

    def test_two_separate_cycles_broken(self) -> None:
        a = make_candidate("a", depends={"b": "*"}, index=0)
        b = make_candidate("b", depends={"a": "*"}, index=1)
        c = make_candidate("c", depends={"d": "*"}, index=2)
        d = make_candidate("d", depends={"c": "*"}, index=3)
        order = activation_order([a, b, c, d], break_cycles=True)
        assert order.complete
        assert len(order.mods) == 4
        assert len(order.warnings) == 2

    def test_empty_selection(self) -> None:
        order = activation_order([])
        assert order.mods == ()
        assert order.complete
