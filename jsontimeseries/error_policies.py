"""
Error handling policies for jsontimeseries.

Per-node failures (a key template placeholder that cannot be resolved
while unresolved replacements are disallowed) are handed to a policy,
which decides whether the node is skipped quietly, recorded, or whether
the whole extraction stops. Without a policy the node is skipped and a
DEBUG record is logged.

Configuration errors and internal stack errors never reach a policy.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .core.pointer import JsonPath, format_pointer
from .exceptions import ExtractionError


log = logging.getLogger(__name__)


class NodeErrorPolicy(ABC):
    """
    Base class for per-node error policies.

    Subclasses implement different strategies for handling errors that
    occur while building a single sample.
    """

    @abstractmethod
    def handle(self, error: Exception, path: JsonPath) -> None:
        """
        Handle an error raised while emitting the node at ``path``.

        Args:
            error: The exception that was raised
            path: Path of the node, relative to the processing root

        Returns:
            None to skip the node and continue, or re-raises the
            exception to stop the extraction.
        """
        pass


class SkipNodePolicy(NodeErrorPolicy):
    """
    Policy that skips the failing node and keeps going.

    This is the default behavior; the skipped node leaves no trace other
    than a DEBUG log record.
    """

    def handle(self, error: Exception, path: JsonPath) -> None:
        log.debug("Skipping element %s: %s", format_pointer(path), error)


class FailFastPolicy(NodeErrorPolicy):
    """
    Policy that immediately re-raises any error, stopping extraction.

    Useful when a missing key component means the output is unusable.
    """

    def handle(self, error: Exception, path: JsonPath) -> None:
        """Re-raise the error immediately."""
        raise error


class CollectErrorsPolicy(NodeErrorPolicy):
    """
    Policy that collects all errors and skips the failing nodes.

    Useful for reporting every unresolved key at the end of a batch.
    """

    def __init__(self):
        """Initialize the policy."""
        self.errors: List[Dict[str, Any]] = []

    def handle(self, error: Exception, path: JsonPath) -> None:
        """Record the error and skip the node."""
        self.errors.append({
            'path': format_pointer(path),
            'placeholder': getattr(error, 'placeholder', None),
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error)
        })

    @property
    def skipped_paths(self) -> List[str]:
        return [record['path'] for record in self.errors]

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        placeholders: Dict[str, int] = {}
        for record in self.errors:
            name = record['placeholder']
            if name is not None:
                placeholders[name] = placeholders.get(name, 0) + 1
        return {
            'total_errors': len(self.errors),
            'unresolved_placeholders': placeholders,
            'errors': self.errors  # Full error details
        }


class ThresholdPolicy(NodeErrorPolicy):
    """
    Policy that tolerates errors up to a threshold, then fails.

    Useful when a few unresolved keys are expected but many indicate a
    template that does not fit the documents.
    """

    def __init__(self, max_errors: int = 10):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum errors to tolerate before failing
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.errors: List[Exception] = []

    def handle(self, error: Exception, path: JsonPath) -> None:
        """Skip the node if under threshold, otherwise raise."""
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise ExtractionError(f"Error threshold exceeded ({self.max_errors} errors)") from error

        log.debug("Skipping element %s [%d/%d]: %s",
                  format_pointer(path), self.error_count, self.max_errors, error)
