"""
Tests for the high-level API, ExtractionOptions and ExtractionPlan.
"""

import json
from datetime import datetime, timezone

import pytest

from jsontimeseries import (
    ConfigurationError,
    ExtractionOptions,
    ExtractionPlan,
    FailFastPolicy,
    PointerMatchRule,
    TimestampSource,
    count_samples,
    extract_samples,
    extract_samples_from_json,
    get_sample_keys,
)


T1 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

DOCUMENT = {
    "time": "2024-05-01T12:00:00Z",
    "temperature": 28.1,
    "acceleration": {"x": -0.876, "y": 0.516},
}


class TestExtractionOptions:
    """Defaults, presets and validation."""

    def test_defaults(self):
        options = ExtractionOptions()
        assert options.template == "{$prop}"
        assert options.path_separator == "/"
        assert options.include_array_indexes_in_keys is True
        assert options.allow_unresolved_replacements is True
        assert options.recursive is False
        assert options.max_depth == 5
        assert options.timestamp_path == "/time"
        assert options.allow_nested_timestamps is False
        assert options.allow_wildcard_expressions is False
        assert options.validate() == []

    def test_flat_preset(self):
        options = ExtractionOptions.flat(recursive=True, template="{$prop-local}")
        assert options.recursive is False
        assert options.template == "{$prop-local}"

    def test_nested_preset(self):
        options = ExtractionOptions.nested(max_depth=3)
        assert options.recursive is True
        assert options.max_depth == 3
        assert options.allow_nested_timestamps is True

        options = ExtractionOptions.nested(allow_nested_timestamps=False)
        assert options.allow_nested_timestamps is False

    def test_is_unbounded(self):
        assert ExtractionOptions.nested(max_depth=0).is_unbounded
        assert ExtractionOptions.nested(max_depth=-1).is_unbounded
        assert not ExtractionOptions.nested(max_depth=1).is_unbounded
        assert not ExtractionOptions(max_depth=0).is_unbounded

    def test_empty_template(self):
        errors = ExtractionOptions(template="   ").validate()
        assert errors == ["template cannot be empty or white space"]

    def test_empty_separator(self):
        assert ExtractionOptions(path_separator="").validate() == ["path_separator cannot be empty"]

    def test_invalid_pointers(self):
        errors = ExtractionOptions(start_at="body", timestamp_path="ts").validate()
        assert len(errors) == 2
        assert errors[0].startswith("start_at")
        assert errors[1].startswith("timestamp_path")

    def test_invalid_max_depth(self):
        assert ExtractionOptions(max_depth="5").validate() == ["max_depth must be an integer"]
        assert ExtractionOptions(max_depth=True).validate() == ["max_depth must be an integer"]

    def test_non_callable_hooks(self):
        errors = ExtractionOptions(timestamp_parser="iso", include_element=1).validate()
        assert "timestamp_parser must be callable" in errors
        assert "include_element must be callable" in errors

    def test_invalid_replacement_provider(self):
        errors = ExtractionOptions(template_replacement_provider=3).validate()
        assert errors == ["template_replacement_provider must be callable or a mapping"]

    def test_invalid_error_policy(self):
        errors = ExtractionOptions(error_policy=object()).validate()
        assert errors == ["error_policy must provide a handle(error, path) method"]

    def test_invalid_match_rules(self):
        errors = ExtractionOptions(
            include_pointers=["/ok", "/data/#/val"],
            exclude_pointers=["nope"],
        ).validate()
        assert len(errors) == 2
        assert errors[0].startswith("include_pointers:")
        assert errors[1].startswith("exclude_pointers:")


class TestExtractionPlan:
    """Plan construction and summary."""

    def test_invalid_options_raise(self):
        with pytest.raises(ConfigurationError, match="Invalid extraction options"):
            ExtractionPlan(ExtractionOptions(template=""))

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ExtractionPlan(ExtractionOptions(include_pointers=["/data/#/val"]))

    def test_summary_defaults(self):
        summary = ExtractionPlan().get_summary()
        assert summary == {
            'template': "{$prop}",
            'default_template': True,
            'recursive': False,
            'max_depth': 1,
            'unbounded': False,
            'start_at': None,
            'timestamp_path': "/time",
            'nested_timestamps': False,
            'filtered': False,
            'error_policy': "SkipNodePolicy",
        }

    def test_summary_configured(self):
        options = ExtractionOptions.nested(
            max_depth=0,
            template="dev/{$prop}",
            start_at="/body",
            timestamp_path="/ts",
            exclude_pointers=["/debug"],
            error_policy=FailFastPolicy(),
        )
        summary = ExtractionPlan(options).get_summary()
        assert summary['default_template'] is False
        assert summary['unbounded'] is True
        assert summary['start_at'] == "/body"
        assert summary['timestamp_path'] == "/ts"
        assert summary['nested_timestamps'] is True
        assert summary['filtered'] is True
        assert summary['error_policy'] == "FailFastPolicy"

    def test_pointers_accept_segments_and_rules(self):
        doc = {"a/b": {"time": "2024-05-01T12:00:00Z", "v": 1, "w": 2}}
        options = ExtractionOptions(
            start_at=("a/b",),
            include_pointers=[PointerMatchRule("/v")],
        )
        samples = list(ExtractionPlan(options).execute(doc))
        assert [s.key for s in samples] == ["v"]
        assert samples[0].timestamp == T1


class TestFunctionalApi:
    """Convenience wrappers."""

    def test_extract_samples_with_overrides(self):
        samples = list(extract_samples(DOCUMENT, recursive=True))
        assert [s.key for s in samples] == ["temperature", "acceleration/x", "acceleration/y"]

    def test_overrides_apply_on_top_of_options(self):
        options = ExtractionOptions(path_separator=".")
        keys = get_sample_keys(DOCUMENT, options, recursive=True)
        assert keys == ["temperature", "acceleration.x", "acceleration.y"]
        assert options.recursive is False

    def test_unknown_override(self):
        with pytest.raises(ConfigurationError, match="Unknown extraction option"):
            extract_samples(DOCUMENT, recursve=True)

    def test_extract_samples_from_json(self):
        text = json.dumps(DOCUMENT)
        samples = list(extract_samples_from_json(text))
        assert [s.key for s in samples] == ["temperature", "acceleration"]
        assert samples[1].value.value == '{"x":-0.876,"y":0.516}'

    def test_extract_samples_from_json_preserves_member_order(self):
        text = '{"z": 1, "a": 2, "m": 3}'
        assert [s.key for s in extract_samples_from_json(text)] == ["z", "a", "m"]

    def test_count_samples(self):
        assert count_samples(DOCUMENT) == 2
        assert count_samples(DOCUMENT, recursive=True) == 3
        assert count_samples({}) == 0

    def test_get_sample_keys_keeps_duplicates(self):
        doc = [{"v": 1}, {"v": 2}]
        assert get_sample_keys(doc) == ["v", "v"]

    def test_sample_to_dict(self):
        sample = next(extract_samples(DOCUMENT))
        assert sample.to_dict() == {
            'key': "temperature",
            'timestamp': "2024-05-01T12:00:00+00:00",
            'value': 28.1,
            'timestamp_source': TimestampSource.DOCUMENT.value,
        }

    def test_replacement_provider_mapping(self):
        keys = get_sample_keys(
            {"temp": 20},
            template="{site}/{$prop}",
            template_replacement_provider={"site": "north"},
        )
        assert keys == ["north/temp"]
