import re
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field
from guardian.rules.catalogue import builtin_definitions


class Severity(IntEnum):
    """Fixed ranking: info < warning < error < critical."""
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4

    @property
    def label(self):
        return self.name.lower()

    @classmethod
    def parse(cls, value):
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity '{value}'. Expected one of: info, warning, error, critical.")


@dataclass(frozen=True)
class ValidationRule:
    code: str
    severity: Severity
    pattern: re.Pattern
    description: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def matches(self, value):
        return self.pattern.search(value) is not None


class CustomPattern(BaseModel):
    code: str = ""
    severity: str = "error"
    description: str = ""
    regex: str = ""
    tags: List[str] = Field(default_factory=list)


class PatternFile(BaseModel):
    """Contents of guardian.patterns.json."""
    version: int = 1
    patterns: List[CustomPattern] = Field(default_factory=list)
    disabled: List[str] = Field(default_factory=list)


class RuleLibrary:
    """
    Ordered set of detection rules plus the classifier over them.

    Built once per instance by initialize() and then frozen. Built-ins come
    first in catalogue order, then custom rules. A custom rule whose code
    already exists removes that rule and is appended like any other.
    """

    def __init__(self, secret_key_length=40, generic_secret_min_length=16):
        self.secret_key_length = secret_key_length
        self.generic_secret_min_length = generic_secret_min_length
        self.logger = logging.getLogger("RuleLibrary")
        self._rules: Optional[Tuple[ValidationRule, ...]] = None

    @property
    def initialized(self):
        return self._rules is not None

    @property
    def rules(self):
        if self._rules is None:
            raise RuntimeError("RuleLibrary must be initialized before use.")
        return self._rules

    def initialize(self, custom_patterns: Optional[PatternFile] = None):
        if self._rules is not None:
            self.logger.warning("Rule library is already initialized. Skipping re-initialization.")
            return

        self.logger.info("Initializing rule library...")
        rules = self._load_builtin_rules(custom_patterns.disabled if custom_patterns else [])
        self._load_custom_rules(rules, custom_patterns)
        self._rules = tuple(rules)
        self.logger.info(f"Rule library initialized with {len(self._rules)} rules.")

    def find_first_violation(self, value) -> Optional[ValidationRule]:
        rules = self.rules
        if not value:
            return None
        for rule in rules:
            if rule.matches(value):
                return rule
        return None

    def get_rule(self, code):
        folded = code.casefold()
        for rule in self.rules:
            if rule.code.casefold() == folded:
                return rule
        return None

    def summary(self):
        counts = {}
        for rule in self.rules:
            counts[rule.severity.label] = counts.get(rule.severity.label, 0) + 1
        return {'total_rules': len(self.rules), 'rules_by_severity': counts}

    def _load_builtin_rules(self, disabled):
        disabled = {code.casefold() for code in disabled}
        rules = []
        for d in builtin_definitions(self.secret_key_length, self.generic_secret_min_length):
            if d.code.casefold() in disabled:
                self.logger.info(f"Built-in rule '{d.code}' disabled by pattern file.")
                continue
            rules.append(ValidationRule(
                code=d.code,
                severity=Severity.parse(d.severity),
                pattern=re.compile(d.regex, d.flags),
                description=d.description,
                tags=d.tags,
            ))
        self.logger.debug(f"Loaded {len(rules)} built-in rules.")
        return rules

    def _load_custom_rules(self, rules, custom_patterns):
        if not custom_patterns or not custom_patterns.patterns:
            self.logger.debug("No custom patterns provided to load.")
            return

        self.logger.debug(f"Loading {len(custom_patterns.patterns)} custom rules.")
        for pattern in custom_patterns.patterns:
            rule = self._compile_custom(pattern)
            if rule is None:
                continue

            index = self._index_of(rules, rule.code)
            if index is not None:
                self.logger.warning(f"Custom pattern with code '{rule.code}' overrides an existing rule.")
                del rules[index]
            rules.append(rule)

    def _compile_custom(self, pattern: CustomPattern):
        code = pattern.code.strip()
        if not code or not pattern.regex.strip():
            self.logger.warning(f"Skipping invalid custom pattern with missing code or regex: {pattern.model_dump()}")
            return None
        try:
            severity = Severity.parse(pattern.severity)
        except ValueError as e:
            self.logger.warning(f"Skipping custom pattern '{code}': {e}")
            return None
        try:
            compiled = re.compile(pattern.regex)
        except re.error as e:
            self.logger.error(f"Failed to compile regex for custom pattern '{code}': {e}. The pattern will be skipped.")
            return None

        return ValidationRule(
            code=code,
            severity=severity,
            pattern=compiled,
            description=pattern.description or code,
            tags=tuple(pattern.tags) or ("custom",),
        )

    @staticmethod
    def _index_of(rules, code):
        folded = code.casefold()
        for i, rule in enumerate(rules):
            if rule.code.casefold() == folded:
                return i
        return None
