"""Exception hierarchy for jsontimeseries.

Configuration problems are reported once, before any sample is produced.
Per-node problems are routed through an error policy and normally only
cost the affected sample. Stack bookkeeping failures are defects and are
never recovered.
"""

from typing import Optional, Tuple


class ExtractionError(Exception):
    """Base class for all errors raised by jsontimeseries."""
    pass


class ConfigurationError(ExtractionError, ValueError):
    """Raised when extraction options or match rules are invalid."""
    pass


class UnresolvedPlaceholderError(ExtractionError):
    """Raised when a key template placeholder cannot be resolved.

    Attributes:
        placeholder: Name of the placeholder without braces
        path: Path of the node whose key was being built
    """

    def __init__(self, placeholder: str, path: Optional[Tuple[str, ...]] = None):
        self.placeholder = placeholder
        self.path = path
        location = "/" + "/".join(path) if path else "(root)"
        super().__init__(
            f"Unable to resolve placeholder '{{{placeholder}}}' for element {location}"
        )


class StackStateError(RuntimeError):
    """Raised when a bounded stack is misused (overflow, underflow, use after release)."""
    pass
