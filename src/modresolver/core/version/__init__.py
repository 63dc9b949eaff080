"""Version model: parsing, ordering and range predicates for mod versions.

All public names are re-exported here so callers can write
``from modresolver.core.version import parse_version, parse_predicate``.
"""

from modresolver.core.version.predicates import (
    ANY_VERSION,
    AllOf,
    AnyVersion,
    ComparisonPredicate,
    Operator,
    VersionPredicate,
    WildcardPredicate,
    parse_predicate,
)
from modresolver.core.version.version import (
    Version,
    compare_versions,
    parse_version,
)

__all__ = [
    "ANY_VERSION",
    "AllOf",
    "AnyVersion",
    "ComparisonPredicate",
    "Operator",
    "Version",
    "VersionPredicate",
    "WildcardPredicate",
    "compare_versions",
    "parse_predicate",
    "parse_version",
]
