"""Resolution reports: success selections, failure explanations, serialization."""

from modresolver.core.report.explanation import (
    describe_blame,
    describe_conflict,
    explain,
)
from modresolver.core.report.models import (
    Blame,
    BlameKind,
    Conflict,
    FailureKind,
    ResolutionFailure,
    ResolutionResult,
    ResolutionSuccess,
)
from modresolver.core.report.serialize import (
    candidate_to_dict,
    result_to_dict,
    result_to_json,
)

__all__ = [
    "Blame",
    "BlameKind",
    "Conflict",
    "FailureKind",
    "ResolutionFailure",
    "ResolutionResult",
    "ResolutionSuccess",
    "candidate_to_dict",
    "describe_blame",
    "describe_conflict",
    "explain",
    "result_to_dict",
    "result_to_json",
]
