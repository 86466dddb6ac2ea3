"""High-level API for jsontimeseries.

This module provides simple, functional interfaces for common extraction
tasks. These functions wrap ExtractionPlan for ease of use in simple
cases.
"""

import dataclasses
import json
from typing import Any, Iterable, Iterator, List, Optional

from .config import ExtractionOptions
from .core.matching import PathPredicate, RuleLike, compile_matcher
from .core.sample import Sample
from .exceptions import ConfigurationError
from .planning import ExtractionPlan


def _build_options(options: Optional[ExtractionOptions], overrides: dict) -> ExtractionOptions:
    """Apply keyword overrides to a copy of ``options``."""
    base = options if options is not None else ExtractionOptions()
    if not overrides:
        return base
    valid = {f.name for f in dataclasses.fields(ExtractionOptions)}
    unknown = sorted(set(overrides) - valid)
    if unknown:
        raise ConfigurationError(f"Unknown extraction option(s): {', '.join(unknown)}")
    return dataclasses.replace(base, **overrides)


def extract_samples(
    document: Any,
    options: Optional[ExtractionOptions] = None,
    **overrides
) -> Iterator[Sample]:
    """Extract time series samples from a parsed JSON document.

    Options are validated immediately; a configuration error is raised
    from this call rather than from the first iteration. The returned
    iterator is lazy and single-use.

    Args:
        document: Parsed JSON (an object, or an array of objects)
        options: Extraction options (defaults if None)
        **overrides: Individual ExtractionOptions fields to override

    Returns:
        Iterator of samples in document order

    Raises:
        ConfigurationError: If the options are invalid

    Example:
        >>> doc = {"time": "2024-05-01T12:00:00Z", "temperature": 21.5}
        >>> [s.key for s in extract_samples(doc)]
        ['temperature']
    """
    plan = ExtractionPlan(_build_options(options, overrides))
    return plan.execute(document)


def extract_samples_from_json(
    text: str,
    options: Optional[ExtractionOptions] = None,
    **overrides
) -> Iterator[Sample]:
    """Parse JSON text and extract samples from it.

    Args:
        text: JSON text of an object or an array of objects
        options: Extraction options (defaults if None)
        **overrides: Individual ExtractionOptions fields to override

    Returns:
        Iterator of samples in document order
    """
    plan = ExtractionPlan(_build_options(options, overrides))
    return plan.execute(json.loads(text))


def build_matcher(
    include: Optional[Iterable[RuleLike]] = None,
    exclude: Optional[Iterable[RuleLike]] = None,
    allow_wildcards: bool = False,
) -> PathPredicate:
    """Compile include/exclude match rules into a path predicate.

    The predicate takes a path tuple (``("data", "0", "value")``) and
    can be passed as ``include_element``.

    Raises:
        ConfigurationError: If any rule is invalid

    Example:
        >>> matches = build_matcher(include=["/data/+/value"], allow_wildcards=True)
        >>> matches(("data", "3", "value"))
        True
    """
    return compile_matcher(include, exclude, allow_wildcards)


def count_samples(
    document: Any,
    options: Optional[ExtractionOptions] = None,
    **overrides
) -> int:
    """Count the samples a document would produce.

    Args:
        document: Parsed JSON document
        options: Extraction options
        **overrides: Individual ExtractionOptions fields to override

    Returns:
        Number of samples
    """
    return sum(1 for _ in extract_samples(document, options, **overrides))


def get_sample_keys(
    document: Any,
    options: Optional[ExtractionOptions] = None,
    **overrides
) -> List[str]:
    """Get the keys of every sample in document order (duplicates kept)."""
    return [sample.key for sample in extract_samples(document, options, **overrides)]
