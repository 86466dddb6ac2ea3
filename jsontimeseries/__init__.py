"""jsontimeseries - flatten JSON documents into time series samples.

jsontimeseries walks a parsed JSON document (for example an IoT device
payload) and produces a lazy stream of keyed, timestamped samples ready
for a time series store.

Quick start:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from jsontimeseries import extract_samples, ExtractionOptions

    options = ExtractionOptions(recursive=True, timestamp_path="/ts")
    for sample in extract_samples(document, options):
        print(sample.key, sample.timestamp, sample.value.value)
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

import logging

__version__ = "0.1.0"

# Core components
from .core.pointer import JsonPath, format_pointer, parse_pointer
from .core.matching import PointerMatchRule
from .core.timestamps import ParsedTimestamp, TimestampSource
from .core.sample import (
    BoolValue,
    NullValue,
    NumberValue,
    RawJsonValue,
    Sample,
    SampleValue,
    StringValue,
    ValueKind,
)
from .core.keys import FULL_PATH_PLACEHOLDER, LOCAL_NAME_PLACEHOLDER

# Configuration and planning
from .config import ExtractionOptions
from .planning import ExtractionPlan
from .exceptions import (
    ConfigurationError,
    ExtractionError,
    StackStateError,
    UnresolvedPlaceholderError,
)
from .error_policies import (
    CollectErrorsPolicy,
    FailFastPolicy,
    NodeErrorPolicy,
    SkipNodePolicy,
    ThresholdPolicy,
)

# High-level API
from .api import (
    build_matcher,
    count_samples,
    extract_samples,
    extract_samples_from_json,
    get_sample_keys,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    '__version__',
    # Core
    'JsonPath',
    'format_pointer',
    'parse_pointer',
    'PointerMatchRule',
    'ParsedTimestamp',
    'TimestampSource',
    'Sample',
    'SampleValue',
    'ValueKind',
    'NullValue',
    'NumberValue',
    'StringValue',
    'BoolValue',
    'RawJsonValue',
    'FULL_PATH_PLACEHOLDER',
    'LOCAL_NAME_PLACEHOLDER',
    # Config
    'ExtractionOptions',
    'ExtractionPlan',
    'ExtractionError',
    'ConfigurationError',
    'UnresolvedPlaceholderError',
    'StackStateError',
    'NodeErrorPolicy',
    'SkipNodePolicy',
    'FailFastPolicy',
    'CollectErrorsPolicy',
    'ThresholdPolicy',
    # API
    'extract_samples',
    'extract_samples_from_json',
    'build_matcher',
    'count_samples',
    'get_sample_keys',
]
