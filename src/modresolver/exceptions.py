"""modresolver exception hierarchy.

All public exceptions inherit from ModResolverError, giving callers a single
base class to catch when they want to handle any modresolver-specific failure
without swallowing unrelated errors.
"""


class ModResolverError(Exception):
    """Base exception for all modresolver errors."""


class InvalidVersionError(ModResolverError, ValueError):
    """Raised when a version string or version predicate cannot be parsed.

    Covers negative or non-numeric components, malformed pre-release and
    build suffixes, and wildcard misuse in predicates.
    """


class MetadataError(ModResolverError):
    """Raised when a mod descriptor cannot be read or fails validation.

    Always a soft, per-candidate failure: discovery records it and moves on.
    """


class DiscoveryError(ModResolverError):
    """Raised when discovery as a whole cannot produce a candidate set.

    Only raised when every finder failed to contribute candidates, or when
    discovery exceeds its time budget.
    """


class NestingDepthError(MetadataError):
    """Raised when nested mods are packed deeper than the configured bound."""


class ConfigError(ModResolverError):
    """Raised for unreadable or invalid resolver configuration files."""


class ResolutionError(ModResolverError):
    """Raised when dependency resolution fails.

    Covers unsatisfiable requirements, conflicts and breaks. The resolver
    itself returns a failure report; this exception is raised only when a
    caller asks for it via ``ResolutionFailure.raise_for_failure()``.
    """

    def __init__(self, message: str, result=None) -> None:
        super().__init__(message)
        self.result = result


class ResolutionTimeoutError(ResolutionError):
    """Raised when the resolver ran out of time before finishing its search."""


class ActivationOrderError(ResolutionError):
    """Raised when a valid selection cannot be ordered for activation."""
