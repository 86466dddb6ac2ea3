#!/usr/bin/env python3
"""
IoT payload example for jsontimeseries.

This example demonstrates:
- Recursive extraction with per-reading timestamps
- MQTT-style wildcard include rules
- Keys built from a property of each reading, or from paths without array indexes
"""

import json
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from jsontimeseries import ExtractionOptions, extract_samples


GATEWAY_PAYLOAD = {
    "gateway": "gw-01",
    "body": {
        "data": [
            {"ts": "2024-03-01T09:00:00Z", "t": "boiler/temperature", "v": 71.5},
            {"ts": "2024-03-01T09:00:05Z", "t": "boiler/pressure", "v": 2.31},
            {"ts": "2024-03-01T09:00:10Z", "t": "boiler/temperature", "v": 71.9},
        ]
    },
}

SENSOR_PAYLOAD = {
    "body": {
        "data": [
            {"ts": 1709283600000, "temperature": {"v": 19.2}, "humidity": {"v": 41}},
            {"ts": 1709283660000, "temperature": {"v": 19.4}, "humidity": {"v": 40}},
        ]
    }
}


def print_samples(title, document, options):
    print(f"\n{title}")
    print("-" * 50)
    for sample in extract_samples(document, options):
        print(json.dumps(sample.to_dict()))


def main():
    """Extract samples from two payload layouts."""
    # Each reading names its own key in "t"
    print_samples(
        "Readings keyed by their 't' property:",
        GATEWAY_PAYLOAD,
        ExtractionOptions.nested(
            timestamp_path="/ts",
            include_pointers=["/body/data/+/v"],
            allow_wildcard_expressions=True,
            template="{t}",
        ),
    )

    # Keys are the property paths with the array indexes dropped
    print_samples(
        "Readings keyed by path:",
        SENSOR_PAYLOAD,
        ExtractionOptions.nested(
            timestamp_path="/ts",
            include_pointers=["/body/data/+/+/v"],
            allow_wildcard_expressions=True,
            include_array_indexes_in_keys=False,
        ),
    )


if __name__ == "__main__":
    main()
