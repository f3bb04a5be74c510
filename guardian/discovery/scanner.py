import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Union
from sqlalchemy.exc import SQLAlchemyError
from guardian.db import ConnectionInfo, DatabaseConnector
from guardian.discovery.delta import ScanTarget
from guardian.rules.library import ValidationRule


@dataclass(frozen=True)
class Violation:
    rule: ValidationRule
    target: ScanTarget
    value: str


@dataclass
class SampledTable:
    schema: str
    table: str
    rows_sampled: int = 0
    violations: List[Violation] = field(default_factory=list)


@dataclass
class SkippedTable:
    schema: str
    table: str
    reason: str


TableSample = Union[SampledTable, SkippedTable]


def _as_text(value):
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode('utf-8', errors='replace')
    return str(value)


class DatabaseScanner:
    """
    Samples the tables touched by the delta and classifies every sampled cell.

    One query per table. A table that cannot be resolved or sampled is
    recorded as a SkippedTable and the scan moves on.
    """

    def __init__(self, sample_size=1000, sample_percent=1.0, connector_factory=DatabaseConnector):
        self.sample_size = sample_size
        self.sample_percent = sample_percent
        self.connector_factory = connector_factory
        self.logger = logging.getLogger("DatabaseScanner")
        self.outcomes: List[TableSample] = []

    def scan(self, connection_info: ConnectionInfo, targets, classifier) -> List[Violation]:
        self.outcomes = self.scan_tables(connection_info, targets, classifier)
        violations = []
        for outcome in self.outcomes:
            if isinstance(outcome, SampledTable):
                violations.extend(outcome.violations)
        return violations

    def scan_tables(self, connection_info, targets, classifier) -> List[TableSample]:
        grouped = self._group(targets)
        self.logger.info(f"Starting database scan of {len(grouped)} tables...")

        outcomes = []
        with self.connector_factory(connection_info) as db:
            for (schema, table), table_targets in grouped.items():
                outcome = self._scan_table(db, schema, table, table_targets, classifier)
                if isinstance(outcome, SkippedTable):
                    self.logger.warning(f"Skipped {schema}.{table}: {outcome.reason}")
                outcomes.append(outcome)

        found = sum(len(o.violations) for o in outcomes if isinstance(o, SampledTable))
        self.logger.info(f"Database scan complete. Found {found} potential violations.")
        return outcomes

    @staticmethod
    def _group(targets):
        grouped = OrderedDict()
        for t in sorted(targets, key=lambda t: (t.schema, t.table, t.column)):
            grouped.setdefault((t.schema, t.table), []).append(t)
        return grouped

    def _scan_table(self, db, schema, table, table_targets, classifier) -> TableSample:
        full_table_name = f"{schema}.{table}"
        try:
            resolved = db.resolve_table(schema, table, [t.column for t in table_targets])
        except SQLAlchemyError as e:
            db.rollback()
            return SkippedTable(schema, table, f"metadata lookup failed: {e}")

        if resolved is None:
            return SkippedTable(schema, table, "table not found")
        for column in resolved.missing:
            self.logger.warning(f"Column {full_table_name}.{column} not found, it will not be scanned.")
        if not resolved.columns:
            return SkippedTable(schema, table, "none of the targeted columns exist")

        # Result columns come back in resolved.columns order.
        by_position = [t for t in table_targets if t.column in resolved.columns]
        by_position.sort(key=lambda t: list(resolved.columns).index(t.column))
        self.logger.info(f"Scanning {full_table_name} ({len(by_position)} columns)...")

        sampled = SampledTable(schema, table)
        try:
            result = db.sample(resolved, self.sample_size, self.sample_percent)
            for row in result:
                sampled.rows_sampled += 1
                for i, target in enumerate(by_position):
                    value = row[i]
                    if value is None:
                        continue
                    text_value = _as_text(value)
                    if not text_value:
                        continue
                    rule = classifier.find_first_violation(text_value)
                    if rule is not None:
                        sampled.violations.append(Violation(rule, target, text_value))
        except SQLAlchemyError as e:
            db.rollback()
            self.logger.error(f"Failed to scan table {full_table_name}: {e}")
            return SkippedTable(schema, table, f"sampling query failed: {e}")

        self.logger.debug(f"{full_table_name}: {sampled.rows_sampled} rows, {len(sampled.violations)} violations")
        return sampled
