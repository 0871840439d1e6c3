"""Exception taxonomy for the opportunity aggregator.

None of these ever escape a cycle.  Each one is raised close to the failing
call, caught at the smallest enclosing scope (one source or one item), logged,
and turned into a tagged outcome on the cycle summary.

A listing that already exists is *not* an error; it is reported as
``ItemStatus.DUPLICATE``.
"""

from typing import Optional


class AggregatorError(Exception):
    """Base class for aggregator failures."""

    def __init__(self, message: str, source_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source_name = source_name

    def __str__(self) -> str:
        if self.source_name:
            return f"[{self.source_name}] {self.message}"
        return self.message


class SourceFetchError(AggregatorError):
    """Network or parse failure scoped to one source."""


class ItemNormalizationError(AggregatorError):
    """Bad content or a missing required field on one listing."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        external_apply_url: Optional[str] = None,
    ):
        super().__init__(message, source_name)
        self.external_apply_url = external_apply_url


class PersistenceError(AggregatorError):
    """Storage lookup or insert failure scoped to one listing."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        external_apply_url: Optional[str] = None,
    ):
        super().__init__(message, source_name)
        self.external_apply_url = external_apply_url
