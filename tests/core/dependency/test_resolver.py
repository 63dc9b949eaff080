"""Tests for dependency resolution, conflict reporting and activation order.

Validates that the backtracking resolver picks exactly one candidate per id,
honours requirements, conflicts, provides aliases, builtins and nesting, and
that every failure carries an explanation citing the mods involved.
"""

from __future__ import annotations

import itertools

import pytest

from modresolver.core.dependency import (
    ModResolver,
    SelectionPolicy,
    build_graph,
    resolve,
)
from modresolver.core.dependency import resolver as resolver_module
from modresolver.core.report import BlameKind, FailureKind
from modresolver.exceptions import (
    ActivationOrderError,
    ResolutionError,
    ResolutionTimeoutError,
)
from tests.helpers import make_candidate


def _resolve(*candidates, **kwargs):
    return resolve(build_graph(candidates), **kwargs)


def _selected(result) -> list[str]:
    return sorted(str(m) for m in result.mods)


# ===========================================================================
# Version selection
# ===========================================================================


class TestVersionSelection:
    """Choosing among several versions of one id."""

    def test_requirement_picks_matching_version(self) -> None:
        """A requires B>=2.0 with B 1.0 and B 2.1 present: B 2.1 is selected."""
        result = _resolve(
            make_candidate("a", depends={"b": ">=2.0"}, index=0),
            make_candidate("b", "1.0", index=1),
            make_candidate("b", "2.1", index=2),
        )
        assert result.success
        assert result.version_of("b") == "2.1"
        assert _selected(result) == ["a 1.0", "b 2.1"]

    def test_requirement_can_force_older_version(self) -> None:
        result = _resolve(
            make_candidate("a", depends={"b": "<2.0"}, index=0),
            make_candidate("b", "1.0", index=1),
            make_candidate("b", "2.1", index=2),
        )
        assert result.success
        assert result.version_of("b") == "1.0"

    def test_newest_policy_prefers_highest_version(self) -> None:
        result = _resolve(
            make_candidate("lib", "1.0", index=0),
            make_candidate("lib", "1.5", index=1),
        )
        assert result.version_of("lib") == "1.5"

    def test_first_discovered_policy(self) -> None:
        result = _resolve(
            make_candidate("lib", "1.0", index=0),
            make_candidate("lib", "1.5", index=1),
            policy=SelectionPolicy.FIRST_DISCOVERED,
        )
        assert result.version_of("lib") == "1.0"

    def test_policy_steers_dependent_choice(self) -> None:
        """y 2.0 needs x 1.0; the chosen x decides which y survives."""
        candidates = (
            make_candidate("x", "1.0", index=0),
            make_candidate("x", "2.0", index=1),
            make_candidate("y", "2.0", depends={"x": "1.0"}, index=2),
            make_candidate("y", "1.0", index=3),
        )
        newest = _resolve(*candidates)
        assert (newest.version_of("x"), newest.version_of("y")) == ("2.0", "1.0")
        first = _resolve(*candidates, policy=SelectionPolicy.FIRST_DISCOVERED)
        assert (first.version_of("x"), first.version_of("y")) == ("1.0", "2.0")

    def test_requirement_alternatives(self) -> None:
        """Two ranges on the same target are satisfied by either."""
        result = _resolve(
            make_candidate("a", depends={"b": ["1.x", ">=3.0"]}, index=0),
            make_candidate("b", "2.0", index=1),
            make_candidate("b", "3.1", index=2),
        )
        assert result.version_of("b") == "3.1"

    def test_duplicate_mod_selected_once_with_warning(self) -> None:
        """Two copies of X 1.0: one warning, exactly one X selected."""
        result = _resolve(
            make_candidate("x", "1.0", index=0),
            make_candidate("x", "1.0", index=1),
        )
        assert result.success
        assert [m.id for m in result.mods] == ["x"]
        assert result.mods[0].discovery_index == 0
        assert len(result.warnings) == 1
        assert "Duplicate mod x 1.0" in result.warnings[0]

    def test_policy_parse(self) -> None:
        assert SelectionPolicy.parse("first_discovered") is SelectionPolicy.FIRST_DISCOVERED
        assert SelectionPolicy.parse(" Newest ") is SelectionPolicy.NEWEST
        with pytest.raises(ValueError, match="Unknown selection policy"):
            SelectionPolicy.parse("oldest")


# ===========================================================================
# Provides, builtins and nesting
# ===========================================================================


class TestProvidesAndBuiltins:
    """Alias ids and host-injected modules."""

    def test_provides_alias_satisfies_requirement(self) -> None:
        result = _resolve(
            make_candidate("a", depends={"api": "*"}, index=0),
            make_candidate("impl", "2.0", provides=("api",), index=1),
        )
        assert result.success
        assert result.selected["api"].id == "impl"

    def test_alias_and_real_mod_cannot_both_load(self) -> None:
        """A forced provider of "api" rules out the separate "api" mod."""
        api = make_candidate("api", "1.0", index=0)
        impl = make_candidate("impl", "2.0", provides=("api",), index=1)
        result = _resolve(api, impl)
        assert result.success
        assert result.mods == (impl,)
        assert result.selected["api"] is impl

    def test_builtin_always_selected(self) -> None:
        result = _resolve(
            make_candidate("game", "1.20", builtin=True, index=0),
            make_candidate("a", depends={"game": ">=1.19"}, index=1),
        )
        assert result.success
        assert result.mods[0].id == "game"

    def test_builtin_version_mismatch_fails(self) -> None:
        result = _resolve(
            make_candidate("game", "1.20", builtin=True, index=0),
            make_candidate("a", depends={"game": ">=1.21"}, index=1),
        )
        assert not result.success
        assert result.kind is FailureKind.UNSATISFIABLE
        text = result.explain()
        assert "requires version 1.21 or later of game" in text
        assert "'game' 1.20" in text

    def test_builtin_beats_newer_mod_of_same_id(self) -> None:
        """A mod cannot replace a builtin, even with a newer version."""
        result = _resolve(
            make_candidate("game", "1.20", builtin=True, index=0),
            make_candidate("game", "9.0", index=1),
        )
        assert result.success
        assert result.version_of("game") == "1.20"
        assert result.mods[0].builtin


class TestNesting:
    """Nested candidates need a selected parent."""

    def test_nested_library_selected_with_parent(self) -> None:
        parent = make_candidate("p", depends={"lib": "1.0"}, index=0)
        nested = make_candidate("lib", "1.0", parents=(parent.location,), index=1)
        result = _resolve(parent, nested)
        assert result.success
        assert _selected(result) == ["lib 1.0", "p 1.0"]

    def test_requirement_forces_nested_parent(self) -> None:
        """Picking nested lib 1.0 over root lib 2.0 pulls its parent in."""
        parent = make_candidate("p", index=0)
        nested = make_candidate("lib", "1.0", parents=(parent.location,), index=1)
        root = make_candidate("lib", "2.0", index=2)
        a = make_candidate("a", depends={"lib": "1.0"}, index=3)
        result = _resolve(parent, nested, root, a)
        assert result.success
        assert result.version_of("lib") == "1.0"
        assert result.selected["p"] is parent

    def test_newer_root_copy_replaces_nested_one(self) -> None:
        parent = make_candidate("p", index=0)
        nested = make_candidate("lib", "1.0", parents=(parent.location,), index=1)
        root = make_candidate("lib", "2.0", index=2)
        result = _resolve(parent, nested, root)
        assert result.success
        assert result.version_of("lib") == "2.0"

    def test_unknown_parent_is_ignored(self) -> None:
        orphan = make_candidate("lib", parents=("/gone/parent.zip",), index=0)
        result = _resolve(orphan)
        assert result.success
        assert result.mods == (orphan,)

    def test_nested_in_unloadable_parent(self) -> None:
        parent = make_candidate("p", depends={"missing": "*"}, index=0)
        nested = make_candidate("lib", parents=(parent.location,), index=1)
        result = _resolve(parent, nested)
        assert not result.success
        text = result.explain()
        assert "which is missing! You must install any version of missing." in text

    def test_unrequired_nested_library_does_not_steer_parent(self) -> None:
        """zmod 1.0 bundles lib, zmod 2.0 does not, nothing needs lib: zmod 2.0 wins."""
        old = make_candidate("zmod", "1.0", index=0)
        lib = make_candidate("lib", "1.0", parents=(old.location,), index=1)
        new = make_candidate("zmod", "2.0", index=2)
        result = _resolve(old, lib, new)
        assert result.success
        assert result.mods == (new,)
        assert result.selected.get("lib") is None

    def test_bundled_library_loads_with_its_parent(self) -> None:
        old = make_candidate("zmod", "1.0", index=0)
        lib = make_candidate("lib", "1.0", parents=(old.location,), index=1)
        new = make_candidate("zmod", "2.0", index=2)
        result = _resolve(old, lib, new, policy=SelectionPolicy.FIRST_DISCOVERED)
        assert result.success
        assert _selected(result) == ["lib 1.0", "zmod 1.0"]

    def test_required_nested_library_pulls_in_parent(self) -> None:
        old = make_candidate("zmod", "1.0", index=0)
        lib = make_candidate("lib", "1.0", parents=(old.location,), index=1)
        new = make_candidate("zmod", "2.0", index=2)
        user = make_candidate("user", depends={"lib": "*"}, index=3)
        result = _resolve(old, lib, new, user)
        assert result.success
        assert result.version_of("zmod") == "1.0"
        assert result.selected["lib"] is lib

    def test_conflict_with_unloaded_nested_library_is_harmless(self) -> None:
        old = make_candidate("zmod", "1.0", index=0)
        lib = make_candidate("lib", "1.0", parents=(old.location,), index=1)
        new = make_candidate("zmod", "2.0", index=2)
        picky = make_candidate("picky", conflicts={"lib": "*"}, index=3)
        result = _resolve(old, lib, new, picky, policy=SelectionPolicy.FIRST_DISCOVERED)
        assert result.success
        assert _selected(result) == ["picky 1.0", "zmod 2.0"]


# ===========================================================================
# Failures and explanations
# ===========================================================================


class TestFailures:
    """Unsatisfiable inputs produce explanations naming the mods involved."""

    def test_missing_dependency(self) -> None:
        result = _resolve(make_candidate("a", depends={"c": ">=1.0"}))
        assert not result.success
        blame = result.conflicts[0].blames[0]
        assert blame.kind is BlameKind.MISSING_DEPENDENCY
        assert blame.source.id == "a"
        assert (
            "Mod 'a' 1.0 requires version 1.0 or later of c, which is missing! "
            "You must install version 1.0 or later of c."
        ) in result.explain()

    def test_conflict_cites_both_mods(self) -> None:
        """A conflicts with B: the explanation names A and B."""
        a = make_candidate("a", conflicts={"b": "*"}, index=0)
        b = make_candidate("b", index=1)
        result = _resolve(a, b)
        assert not result.success
        assert result.kind is FailureKind.UNSATISFIABLE
        cited = {c.id for conflict in result.conflicts for c in conflict.candidates}
        assert {"a", "b"} <= cited
        text = result.explain()
        assert "'a' 1.0" in text
        assert "'b' 1.0" in text
        assert "conflicts with" in text

    def test_breaks_uses_incompatible_wording(self) -> None:
        result = _resolve(
            make_candidate("a", breaks={"b": "<2.0"}, index=0),
            make_candidate("b", "1.0", index=1),
        )
        assert not result.success
        assert result.conflicts[0].blames[0].kind is BlameKind.BREAK
        assert "is incompatible with any version before 2.0 of b" in result.explain()

    def test_conflict_with_non_matching_version_is_fine(self) -> None:
        result = _resolve(
            make_candidate("a", conflicts={"b": "<2.0"}, index=0),
            make_candidate("b", "2.0", index=1),
        )
        assert result.success

    def test_conflict_prunes_matching_alternative(self) -> None:
        result = _resolve(
            make_candidate("a", conflicts={"b": "<2.0"}, index=0),
            make_candidate("b", "1.0", index=1),
            make_candidate("b", "2.0", index=2),
            policy=SelectionPolicy.FIRST_DISCOVERED,
        )
        assert result.success
        assert result.version_of("b") == "2.0"

    def test_self_conflict_ignored(self) -> None:
        result = _resolve(make_candidate("a", conflicts={"a": "*"}))
        assert result.success

    def test_unsatisfied_lists_present_versions(self) -> None:
        result = _resolve(
            make_candidate("a", depends={"b": ">=2.0"}, index=0),
            make_candidate("b", "1.0", index=1),
            make_candidate("b", "1.5", index=2),
        )
        assert not result.success
        assert (
            "Mod 'a' 1.0 requires version 2.0 or later of b, "
            "but only 'b' 1.5, 'b' 1.0 is present!"
        ) in result.explain()

    def test_causal_chain_reaches_builtin(self) -> None:
        """a needs lib>=2.0, lib 2.0 needs a newer game than the builtin one."""
        result = _resolve(
            make_candidate("game", "1.20", builtin=True, index=0),
            make_candidate("a", depends={"lib": ">=2.0"}, index=1),
            make_candidate("lib", "1.0", index=2),
            make_candidate("lib", "2.0", depends={"game": ">=1.21"}, index=3),
        )
        assert not result.success
        text = result.explain()
        assert "Mod 'a' 1.0 requires version 2.0 or later of lib" in text
        assert (
            "\t - Because: Mod 'lib' 2.0 requires version 1.21 or later of game, "
            "but only 'game' 1.20 is present!"
        ) in text

    def test_raise_for_failure(self) -> None:
        result = _resolve(make_candidate("a", depends={"c": "*"}))
        with pytest.raises(ResolutionError) as excinfo:
            result.raise_for_failure()
        assert excinfo.value.result is result

    def test_success_raise_for_failure_is_noop(self) -> None:
        _resolve(make_candidate("a")).raise_for_failure()

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A search past its deadline reports TIMEOUT instead of hanging."""
        clock = itertools.count(0, 10)
        monkeypatch.setattr(resolver_module.time, "monotonic", lambda: next(clock))
        result = _resolve(
            make_candidate("lib", "1.0", index=0),
            make_candidate("lib", "2.0", index=1),
            timeout=5,
        )
        assert not result.success
        assert result.kind is FailureKind.TIMEOUT
        assert result.explain().startswith("Mod resolution timed out after 5s")
        with pytest.raises(ResolutionTimeoutError):
            result.raise_for_failure()

    def test_deadline_checked_while_propagating(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Forced selections alone can run out the clock before any search node."""
        clock = itertools.count(0, 10)
        monkeypatch.setattr(resolver_module.time, "monotonic", lambda: next(clock))
        result = _resolve(
            make_candidate("a", depends={"b": "*"}, index=0),
            make_candidate("b", index=1),
            timeout=5,
        )
        assert result.kind is FailureKind.TIMEOUT
        assert "(2 candidates, 0 search nodes)" in result.explain()


# ===========================================================================
# Scale
# ===========================================================================


class TestScale:
    """Larger mod sets resolve well inside a time budget."""

    @staticmethod
    def _layered(ids: int, versions: tuple[str, ...], fan_in: int) -> list:
        candidates = []
        for i in range(ids):
            depends = {f"mod{j:03d}": ">=1.0" for j in range(max(0, i - fan_in), i)}
            for version in versions:
                candidates.append(
                    make_candidate(f"mod{i:03d}", version, depends=depends, index=len(candidates))
                )
        return candidates

    def test_two_hundred_ids(self) -> None:
        result = _resolve(*self._layered(200, ("1.0", "2.0"), 3), timeout=10)
        assert result.success
        assert len(result.mods) == 200
        assert {str(m.version) for m in result.mods} == {"2.0"}

    def test_narrowing_ranges(self) -> None:
        """Each id needs an older version of the previous one, forcing a cascade."""
        candidates = []
        for i in range(150):
            depends = {f"mod{i - 1:03d}": "<3.0"} if i else {}
            for version in ("1.0", "2.0", "3.0"):
                candidates.append(
                    make_candidate(f"mod{i:03d}", version, depends=depends, index=len(candidates))
                )
        result = _resolve(*candidates, timeout=10)
        assert result.success
        assert result.version_of("mod149") == "3.0"
        assert result.version_of("mod000") == "2.0"


# ===========================================================================
# Recommendations and ordering
# ===========================================================================


class TestSuccessReport:
    """Soft findings and activation order of a successful resolution."""

    def test_unmet_recommendation_is_warning(self) -> None:
        result = _resolve(
            make_candidate("a", recommends={"c": ">=2.0"}, index=0),
            make_candidate("c", "1.0", index=1),
        )
        assert result.success
        assert len(result.unmet_recommendations) == 1
        assert (
            " ! Mod 'a' 1.0 recommends version 2.0 or later of c, "
            "but only 'c' 1.0 is present."
        ) in result.explain()

    def test_missing_recommendation(self) -> None:
        result = _resolve(make_candidate("a", recommends={"c": "*"}))
        assert result.success
        assert "recommends any version of c, which is missing." in result.explain()

    def test_suggestion_is_informational(self) -> None:
        result = _resolve(make_candidate("a", suggests={"c": "*"}))
        assert result.success
        assert result.unmet_recommendations == ()

    def test_dependencies_activate_first(self) -> None:
        result = _resolve(
            make_candidate("a", depends={"b": "*"}, index=0),
            make_candidate("b", depends={"c": "*"}, index=1),
            make_candidate("c", index=2),
        )
        assert [m.id for m in result.mods] == ["c", "b", "a"]

    def test_requirement_cycle_fails_ordering(self) -> None:
        result = _resolve(
            make_candidate("a", depends={"b": "*"}, index=0),
            make_candidate("b", depends={"a": "*"}, index=1),
        )
        assert not result.success
        assert result.kind is FailureKind.ACTIVATION_ORDER
        assert [str(m) for m in result.selection] == ["a 1.0", "b 1.0"]
        assert " - Requirement cycle: 'a' 1.0 -> 'b' 1.0 -> 'a' 1.0" in result.explain()
        with pytest.raises(ActivationOrderError):
            result.raise_for_failure()

    def test_requirement_cycle_broken_on_request(self) -> None:
        result = _resolve(
            make_candidate("a", depends={"b": "*"}, index=0),
            make_candidate("b", depends={"a": "*"}, index=1),
            break_cycles=True,
        )
        assert result.success
        assert [m.id for m in result.mods] == ["a", "b"]
        assert result.warnings == (
            "Requirement cycle a 1.0 -> b 1.0 -> a 1.0 broken at a 1.0",
        )

    def test_selected_mapping_is_read_only(self) -> None:
        result = _resolve(make_candidate("a"))
        with pytest.raises(TypeError):
            result.selected["b"] = result.mods[0]  # type: ignore[index]

    def test_resolver_is_repeatable(self) -> None:
        graph = build_graph([
            make_candidate("a", depends={"b": ">=1.0"}, index=0),
            make_candidate("b", "1.0", index=1),
            make_candidate("b", "1.1", index=2),
        ])
        resolver = ModResolver(graph)
        assert resolver.resolve() == resolver.resolve()
        assert resolver.graph is graph
