"""
Unit tests for the suppression engine.
"""

import pytest
from hypothesis import given
from pydantic import ValidationError
from hypothesis import strategies as st

from guardian.discovery import ScanTarget, Violation
from guardian.rules import RuleLibrary
from guardian.suppression import ExceptionPolicy, SuppressionEngine, SuppressionLocation


def policy(source="guardian.exceptions.json", **suppressions):
    return ExceptionPolicy.model_validate({"version": 1, "suppressions": suppressions, "source": source})


@pytest.fixture
def engine():
    return SuppressionEngine()


@pytest.mark.unit
class TestSuppressionEngine:
    """Tests for partitioning violations into active and suppressed"""

    def test_no_policy_keeps_everything_active(self, engine, make_violation):
        violations = [make_violation(), make_violation(code="NET_001")]

        assert engine.apply(violations, None) == (violations, [])
        assert engine.apply(violations, ExceptionPolicy()) == (violations, [])

    def test_exact_match_on_rule_code(self, engine, make_violation):
        v = make_violation(code="PII_001", table="Customers", column="Email")

        active, suppressed = engine.apply([v], policy(PII_001=[{"table": "customers", "column": "EMAIL"}]))

        assert active == []
        assert suppressed == [v]

    def test_code_lookup_is_case_insensitive(self, engine, make_violation):
        v = make_violation(code="PII_001")

        _, suppressed = engine.apply([v], policy(pii_001=[{"table": "Customers", "column": "Email"}]))

        assert suppressed == [v]

    def test_other_code_does_not_suppress(self, engine, make_violation):
        v = make_violation(code="PII_001")

        active, _ = engine.apply([v], policy(NET_001=[{"table": "*", "column": "*"}]))

        assert active == [v]

    def test_column_must_match(self, engine, make_violation):
        v = make_violation(column="Email")

        active, _ = engine.apply([v], policy(PII_001=[{"table": "Customers", "column": "Phone"}]))

        assert active == [v]

    def test_wildcard_code_applies_after_own_code(self, engine, make_violation):
        v = make_violation(code="NET_001", table="AuditLog", column="ClientIp")
        p = policy(NET_001=[{"table": "Other", "column": "*"}], **{"*": [{"table": "AuditLog", "column": "*"}]})

        _, suppressed = engine.apply([v], p)

        assert suppressed == [v]

    def test_wildcard_everything(self, engine, make_violation):
        violations = [make_violation(), make_violation(code="SEC_001", table="Keys", column="Value")]

        active, suppressed = engine.apply(violations, policy(**{"*": [{"table": "*", "column": "*"}]}))

        assert active == []
        assert suppressed == violations

    def test_table_prefix_wildcard(self, engine, make_violation):
        staging = make_violation(table="staging_Customers")
        live = make_violation(table="Customers")
        p = policy(**{"*": [{"table": "Staging_*", "column": "*"}]})

        active, suppressed = engine.apply([staging, live], p)

        assert active == [live]
        assert suppressed == [staging]

    def test_order_is_preserved_in_both_partitions(self, engine, make_violation):
        violations = [make_violation(table=f"T{i}") for i in range(6)]
        p = policy(PII_001=[{"table": "T1", "column": "*"}, {"table": "T4", "column": "*"}])

        active, suppressed = engine.apply(violations, p)

        assert [v.target.table for v in active] == ["T0", "T2", "T3", "T5"]
        assert [v.target.table for v in suppressed] == ["T1", "T4"]

    def test_apply_is_pure_and_idempotent(self, engine, make_violation):
        violations = [make_violation(table="Staging_A"), make_violation(table="B")]
        snapshot = list(violations)
        p = policy(**{"*": [{"table": "Staging_*", "column": "*"}]})

        active, suppressed = engine.apply(violations, p)
        again_active, again_suppressed = engine.apply(active, p)

        assert violations == snapshot
        assert again_active == active
        assert again_suppressed == []
        assert engine.apply(violations, p) == (active, suppressed)

    @pytest.mark.parametrize("location", [{"table": "Customers"}, {"column": "Email"}, {}])
    def test_location_fields_are_required(self, location):
        with pytest.raises(ValidationError):
            SuppressionLocation.model_validate(location)

    def test_explicit_wildcards_match_everything(self):
        assert SuppressionLocation(table="*", column="*").matches("Anything", "AtAll")


_library = RuleLibrary()
_library.initialize()
EMAIL_RULE = _library.get_rule("PII_001")


table_names = st.from_regex(r"[A-Za-z][A-Za-z0-9_]{0,15}", fullmatch=True)


@pytest.mark.unit
class TestSuppressionLaws:
    """Property-based tests for the wildcard laws"""

    @given(tables=st.lists(table_names, min_size=1, max_size=10))
    def test_star_star_suppresses_everything(self, tables):
        violations = [Violation(EMAIL_RULE, ScanTarget("dbo", t, "c"), "v") for t in tables]

        active, suppressed = SuppressionEngine().apply(violations, policy(**{"*": [{"table": "*", "column": "*"}]}))

        assert active == []
        assert suppressed == violations

    @given(tables=st.lists(
        st.tuples(st.sampled_from(["", "Staging_", "STAGING_", "staging"]), table_names),
        min_size=1, max_size=10))
    def test_prefix_suppresses_exactly_matching_tables(self, tables):
        violations = [Violation(EMAIL_RULE, ScanTarget("dbo", p + t, "c"), "v") for p, t in tables]

        active, suppressed = SuppressionEngine().apply(
            violations, policy(**{"*": [{"table": "Staging_*", "column": "*"}]}))

        assert suppressed == [v for v in violations if v.target.table.lower().startswith("staging_")]
        assert active == [v for v in violations if not v.target.table.lower().startswith("staging_")]
