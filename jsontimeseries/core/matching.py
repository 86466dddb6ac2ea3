"""Pointer matching for jsontimeseries.

Match rules decide which paths in a document are emitted. A rule is one of:

- a literal JSON Pointer (``/data/0/value``), compared segment for segment;
- a pattern expression (``/data/*/val?``) where ``*`` matches any run of
  characters and ``?`` exactly one, evaluated case-insensitively against
  the whole serialized path;
- an MQTT-style expression (``/data/+/value``, ``/data/#``) where a ``+``
  segment matches exactly one segment and a final ``#`` segment matches
  zero or more remaining segments.

Pattern and MQTT styles are mutually exclusive per rule: any ``?`` or ``*``
makes the rule a pattern and ``+``/``#`` are then ordinary characters.
Wildcards are only honoured when the matcher is compiled with
``allow_wildcards=True``; otherwise every rule is a literal.
"""

import re
from typing import Callable, Iterable, List, Optional, Pattern, Set, Union

from ..exceptions import ConfigurationError
from .pointer import JsonPath, format_pointer, try_parse_pointer


SINGLE_CHARACTER_WILDCARD = "?"
MULTI_CHARACTER_WILDCARD = "*"
SINGLE_LEVEL_MQTT_WILDCARD = "+"
MULTI_LEVEL_MQTT_WILDCARD = "#"

PathPredicate = Callable[[JsonPath], bool]
RuleLike = Union[str, JsonPath, "PointerMatchRule"]


class PointerMatchRule:
    """A single include/exclude rule.

    Rules are immutable once constructed. Construction fails with
    ``ConfigurationError`` if the text is neither a valid JSON Pointer nor
    a pattern expression, or if an MQTT multi-level wildcard appears
    anywhere but the final segment.

    Attributes:
        raw_text: The rule as written
        parsed_literal: The rule parsed as a JSON Pointer, or None when the
            text is only valid as a pattern expression
    """

    __slots__ = (
        "raw_text",
        "parsed_literal",
        "_is_pattern",
        "_has_single_level",
        "_has_multi_level",
        "_regex",
    )

    def __init__(self, rule: Union[str, JsonPath]):
        if isinstance(rule, (tuple, list)):
            self.parsed_literal: Optional[JsonPath] = tuple(str(s) for s in rule)
            self.raw_text: str = format_pointer(self.parsed_literal)
        elif isinstance(rule, str):
            self.raw_text = rule
            self.parsed_literal = try_parse_pointer(rule)
        else:
            raise ConfigurationError(f"Cannot create a match rule from {rule!r}")

        self._is_pattern = (
            SINGLE_CHARACTER_WILDCARD in self.raw_text
            or MULTI_CHARACTER_WILDCARD in self.raw_text
        )
        self._has_single_level = False
        self._has_multi_level = False
        self._regex: Optional[Pattern[str]] = None

        if self.parsed_literal is None and not self._is_pattern:
            raise ConfigurationError(
                f"'{self.raw_text}' is not a valid JSON Pointer or pattern wildcard expression"
            )

        if not self._is_pattern and self.parsed_literal is not None:
            last = len(self.parsed_literal) - 1
            for index, segment in enumerate(self.parsed_literal):
                # Segments that mix wildcard and other characters are literal
                if segment == SINGLE_LEVEL_MQTT_WILDCARD:
                    self._has_single_level = True
                elif segment == MULTI_LEVEL_MQTT_WILDCARD:
                    if index != last:
                        raise ConfigurationError(
                            f"'{self.raw_text}' is not a valid MQTT match expression: "
                            f"the multi-level wildcard '#' is only allowed as the final segment"
                        )
                    self._has_multi_level = True

    # Construction helpers

    @classmethod
    def parse(cls, text: str) -> "PointerMatchRule":
        """Create a rule from text, raising ``ConfigurationError`` if invalid."""
        return cls(text)

    @classmethod
    def try_parse(cls, text: Optional[str]) -> Optional["PointerMatchRule"]:
        """Create a rule from text, returning None if invalid."""
        if text is None:
            return None
        try:
            return cls(text)
        except ConfigurationError:
            return None

    @classmethod
    def coerce(cls, rule: RuleLike) -> "PointerMatchRule":
        if isinstance(rule, PointerMatchRule):
            return rule
        return cls(rule)

    # Classification

    @property
    def is_pattern_wildcard_match_rule(self) -> bool:
        return self._is_pattern

    @property
    def is_mqtt_wildcard_match_rule(self) -> bool:
        return not self._is_pattern and (self._has_single_level or self._has_multi_level)

    @property
    def is_wildcard_match_rule(self) -> bool:
        return self.is_pattern_wildcard_match_rule or self.is_mqtt_wildcard_match_rule

    # Matching

    def matches(self, path: JsonPath, allow_wildcards: bool = True) -> bool:
        """Check if a path satisfies this rule.

        Args:
            path: Candidate path relative to the processing root
            allow_wildcards: When False the rule is compared literally even
                if it contains wildcard characters

        Returns:
            True if the path matches
        """
        if allow_wildcards and self._is_pattern:
            return self._pattern().fullmatch(format_pointer(path)) is not None

        segments = self.parsed_literal
        if segments is None:
            # Only valid as a pattern expression
            return False
        if allow_wildcards and (self._has_single_level or self._has_multi_level):
            return self._matches_mqtt(segments, path)
        return tuple(path) == segments

    def _pattern(self) -> Pattern[str]:
        if self._regex is None:
            parts: List[str] = []
            for ch in self.raw_text:
                if ch == MULTI_CHARACTER_WILDCARD:
                    parts.append(".*")
                elif ch == SINGLE_CHARACTER_WILDCARD:
                    parts.append(".")
                else:
                    parts.append(re.escape(ch))
            self._regex = re.compile("".join(parts), re.IGNORECASE | re.DOTALL)
        return self._regex

    def _matches_mqtt(self, rule: JsonPath, path: JsonPath) -> bool:
        if self._has_multi_level:
            fixed = rule[:-1]
            if len(path) < len(fixed):
                return False
        else:
            fixed = rule
            if len(path) != len(fixed):
                return False

        for expected, actual in zip(fixed, path):
            if expected == SINGLE_LEVEL_MQTT_WILDCARD:
                continue
            if expected != actual:
                return False
        return True

    def __str__(self) -> str:
        return self.raw_text

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.raw_text!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PointerMatchRule):
            return NotImplemented
        return self.raw_text == other.raw_text

    def __hash__(self) -> int:
        return hash(self.raw_text)


class _CompiledRuleSet:
    """Rules split into a literal lookup set and a list of wildcard rules."""

    def __init__(self, rules: List[PointerMatchRule], allow_wildcards: bool):
        self.literals: Set[JsonPath] = set()
        self.wildcards: List[PointerMatchRule] = []
        for rule in rules:
            if allow_wildcards and rule.is_wildcard_match_rule:
                self.wildcards.append(rule)
            elif rule.parsed_literal is not None:
                self.literals.add(rule.parsed_literal)
            # Pattern-only text compared literally can never match anything

    def matches(self, path: JsonPath) -> bool:
        if path in self.literals:
            return True
        for rule in self.wildcards:
            if rule.matches(path):
                return True
        return False

    def __len__(self) -> int:
        return len(self.literals) + len(self.wildcards)


def _coerce_rules(rules: Optional[Iterable[RuleLike]]) -> Optional[List[PointerMatchRule]]:
    if rules is None:
        return None
    if isinstance(rules, (str, PointerMatchRule)):
        rules = [rules]
    return [PointerMatchRule.coerce(rule) for rule in rules]


def _accept_all(path: JsonPath) -> bool:
    return True


def compile_matcher(
    include_rules: Optional[Iterable[RuleLike]] = None,
    exclude_rules: Optional[Iterable[RuleLike]] = None,
    allow_wildcards: bool = False,
) -> PathPredicate:
    """Compile include/exclude rules into a single path predicate.

    - No rules at all: every path is accepted.
    - Only exclude rules: every path not excluded is accepted.
    - Include rules: only matching paths are accepted, and exclusion
      always takes precedence over inclusion. An empty include list
      therefore accepts nothing.

    Args:
        include_rules: Rules a path must match to be accepted
        exclude_rules: Rules that reject a path
        allow_wildcards: Treat rules containing wildcard characters as
            wildcard expressions instead of literal paths

    Returns:
        Callable taking a path tuple and returning True to accept it

    Raises:
        ConfigurationError: If any rule is invalid
    """
    includes = _coerce_rules(include_rules)
    excludes = _coerce_rules(exclude_rules)

    if includes is None and excludes is None:
        return _accept_all

    include_set = _CompiledRuleSet(includes, allow_wildcards) if includes is not None else None
    exclude_set = _CompiledRuleSet(excludes, allow_wildcards) if excludes else None

    def predicate(path: JsonPath) -> bool:
        path = tuple(path)
        if exclude_set is not None and exclude_set.matches(path):
            return False
        if include_set is None:
            return True
        return include_set.matches(path)

    return predicate
