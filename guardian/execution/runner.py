import time
import logging
from enum import Enum
from guardian.config.files import FileProvider
from guardian.config.vault import SecretResolver
from guardian.db import ConnectionInfo, delta_dialect
from guardian.discovery import DatabaseScanner, DeltaParser
from guardian.reporting import ReportBuilder
from guardian.rules import RuleLibrary
from guardian.suppression import SuppressionEngine


class RunState(Enum):
    IDLE = "IDLE"
    CONFIGURED = "CONFIGURED"
    DELTA_PARSED = "DELTA_PARSED"
    TARGETS_EMPTY = "TARGETS_EMPTY"
    RULES_READY = "RULES_READY"
    SCANNED = "SCANNED"
    SUPPRESSED = "SUPPRESSED"
    REPORTED = "REPORTED"
    DONE = "DONE"


class GuardianRunner:
    """
    One governance scan: parse delta -> sample & classify -> suppress -> report.

    Single use. Collaborators can be injected; by default each run builds its
    own parser, rule library, scanner and suppression engine.
    """

    def __init__(self, config, file_provider=None, scanner=None, secret_resolver=None,
                 rule_library=None, suppression_engine=None):
        self.config = config
        self.files = file_provider or FileProvider()
        self.scanner = scanner or DatabaseScanner(config.SAMPLE_SIZE, config.SAMPLE_PERCENT)
        self.secrets = secret_resolver or SecretResolver()
        self.rules = rule_library or RuleLibrary(config.SECRET_KEY_LENGTH, config.GENERIC_SECRET_MIN_LENGTH)
        self.suppression = suppression_engine or SuppressionEngine()
        self.parser = DeltaParser(config.DEFAULT_SCHEMA, config.PARSE_TIMEOUT,
                                  dialect=delta_dialect(config.DB_PROVIDER, config.DB_CONNECTION_STRING))
        self.state = RunState.IDLE
        self.report = None
        self.logger = logging.getLogger("GuardianRunner")

    def _advance(self, state):
        self.logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self):
        if self.state != RunState.IDLE:
            raise RuntimeError("GuardianRunner instances are single-use; create a new runner for another scan.")

        started = time.monotonic()

        print("\n[INIT] Validating configuration...")
        self.config.validate()
        self.config.log(self.logger)
        self._advance(RunState.CONFIGURED)

        sql_text = self.files.read_sql(self.config.SQL_FILE_PATH)
        policy = self.files.load_exceptions(self.config.EXCEPTIONS_FILE_PATH)
        custom_patterns = self.files.load_patterns(self.config.PATTERNS_FILE_PATH)

        print("\n[PHASE 1] Analyzing SQL delta...")
        targets = self.parser.parse_delta(sql_text)
        self._advance(RunState.DELTA_PARSED)
        builder = ReportBuilder(policy.source if policy else self.config.EXCEPTIONS_FILE_PATH)

        if not targets:
            self._advance(RunState.TARGETS_EMPTY)
            print("No new or altered columns found in the SQL delta. Nothing to scan.")
            return self._finish(builder, [], [], started)

        for t in sorted(targets, key=lambda t: t.location):
            self.logger.debug(f"Target: {t.location}")

        print("\n[PHASE 2] Initializing rules...")
        self.rules.initialize(custom_patterns)
        summary = self.rules.summary()
        self.logger.info(f"{summary['total_rules']} rules active: {summary['rules_by_severity']}")
        self._advance(RunState.RULES_READY)

        print(f"\n[PHASE 3] Sampling {len(targets)} columns...")
        connection_info = ConnectionInfo(
            url=self.secrets.resolve_connection_string(self.config),
            provider=self.config.DB_PROVIDER,
            query_timeout=self.config.QUERY_TIMEOUT,
        )
        violations = self.scanner.scan(connection_info, targets, self.rules)
        self._advance(RunState.SCANNED)

        print("\n[PHASE 4] Applying exceptions...")
        active, suppressed = self.suppression.apply(violations, policy)
        self._advance(RunState.SUPPRESSED)

        return self._finish(builder, active, suppressed, started)

    def _finish(self, builder, active, suppressed, started):
        print("\n[PHASE 5] Writing report...")
        report, exit_code = builder.build(
            active, suppressed, self.config.CONTINUE_ON_FAILURE, time.monotonic() - started)
        builder.write(report, self.config.REPORT_PATH)
        self.report = report
        self._advance(RunState.REPORTED)

        summary = report.summary
        print(f"\n[RESULT] {summary.result}: {summary.active_violations} active, "
              f"{summary.violations_suppressed} suppressed (highest: {summary.highest_active_severity}).")
        for v in report.active_violations:
            print(f"  - {v.location:<40} | {v.violation_code:<9} | {v.severity:<8} | {v.message}")

        self._advance(RunState.DONE)
        return exit_code
