import logging
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field

WILDCARD = "*"


class SuppressionLocation(BaseModel):
    """Both fields are required; '*' must be written out to match everything."""
    table: str
    column: str

    def matches(self, table, column):
        return _table_matches(self.table, table) and _column_matches(self.column, column)


class ExceptionPolicy(BaseModel):
    """Contents of guardian.exceptions.json. `source` is where it was loaded from."""
    version: int = 1
    suppressions: Dict[str, List[SuppressionLocation]] = Field(default_factory=dict)
    source: Optional[str] = None

    def is_empty(self):
        return not any(self.suppressions.values())

    def locations_for(self, code):
        folded = code.casefold()
        for key, locations in self.suppressions.items():
            if key.casefold() == folded:
                return locations
        return []


def _table_matches(pattern, table):
    pattern = pattern.strip()
    if pattern == WILDCARD:
        return True
    if pattern.endswith(WILDCARD):
        return table.casefold().startswith(pattern[:-1].casefold())
    return pattern.casefold() == table.casefold()


def _column_matches(pattern, column):
    pattern = pattern.strip()
    return pattern == WILDCARD or pattern.casefold() == column.casefold()


class SuppressionEngine:
    def __init__(self):
        self.logger = logging.getLogger("SuppressionEngine")

    def apply(self, violations, policy: Optional[ExceptionPolicy]) -> Tuple[list, list]:
        """
        Splits violations into (active, suppressed).

        The rule's own code entry is checked before the '*' entry; the first
        matching location wins. Input order is kept in both lists.
        """
        violations = list(violations)
        if policy is None or policy.is_empty() or not violations:
            self.logger.info("No suppression policy to apply. All violations remain active.")
            return violations, []

        wildcard = policy.locations_for(WILDCARD)
        active, suppressed = [], []
        for v in violations:
            candidates = list(policy.locations_for(v.rule.code))
            if v.rule.code != WILDCARD:
                candidates += wildcard
            if any(loc.matches(v.target.table, v.target.column) for loc in candidates):
                self.logger.debug(f"Suppressed {v.rule.code} at {v.target.location}")
                suppressed.append(v)
            else:
                active.append(v)

        self.logger.info(f"Suppression applied. Active: {len(active)}, Suppressed: {len(suppressed)}.")
        return active, suppressed
