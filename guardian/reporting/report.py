import logging
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from guardian.errors import ExitCode, GuardianError

SUCCESS = "SUCCESS"
FORCED_SUCCESS = "FORCED_SUCCESS"
BUILD_FAILURE = "BUILD_FAILURE"

MAX_SAMPLE_LENGTH = 100
FORCED_CONTINUATION_REASON = (
    "Emergency override flag 'GUARDIAN_CONTINUE_ON_FAILURE' was set, "
    "forcing a successful exit code despite active violations."
)


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportSummary(_ReportModel):
    violations_found: int = 0
    violations_suppressed: int = 0
    active_violations: int = 0
    highest_active_severity: str = "none"
    scan_duration_ms: int = 0
    result: str = SUCCESS


class ForcedContinuation(_ReportModel):
    activated: bool = True
    reason: str = FORCED_CONTINUATION_REASON


class ActiveViolationDetail(_ReportModel):
    violation_code: str
    severity: str
    location: str
    message: str
    sample: str


class SuppressionInfo(_ReportModel):
    source: str


class SuppressedViolationDetail(_ReportModel):
    violation_code: str
    severity: str
    location: str
    message: str
    suppression: SuppressionInfo


class ScanReport(_ReportModel):
    summary: ReportSummary = Field(default_factory=ReportSummary)
    forced_continuation: Optional[ForcedContinuation] = None
    active_violations: List[ActiveViolationDetail] = Field(default_factory=list)
    suppressed_violations: List[SuppressedViolationDetail] = Field(default_factory=list)

    def to_json(self):
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def sanitize_sample(value, max_length=MAX_SAMPLE_LENGTH):
    if value is None:
        return ""
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."


def exit_code_for(result):
    if result in (SUCCESS, FORCED_SUCCESS):
        return ExitCode.SUCCESS
    if result == BUILD_FAILURE:
        return ExitCode.VIOLATIONS_FOUND
    return ExitCode.UNHANDLED_EXCEPTION


class ReportBuilder:
    """Turns the partitioned violations into the report artifact and the exit code."""

    def __init__(self, policy_source=None):
        self.policy_source = policy_source
        self.logger = logging.getLogger("ReportBuilder")

    def build(self, active, suppressed, forced_continue=False, duration=0.0):
        """duration is in seconds."""
        active = list(active)
        suppressed = list(suppressed)

        if not active:
            result = SUCCESS
            highest = "none"
        else:
            result = FORCED_SUCCESS if forced_continue else BUILD_FAILURE
            highest = max(v.rule.severity for v in active).label

        report = ScanReport(
            summary=ReportSummary(
                violations_found=len(active) + len(suppressed),
                violations_suppressed=len(suppressed),
                active_violations=len(active),
                highest_active_severity=highest,
                scan_duration_ms=int(round(duration * 1000)),
                result=result,
            ),
            forced_continuation=ForcedContinuation() if result == FORCED_SUCCESS else None,
            active_violations=[self._active_detail(v) for v in active],
            suppressed_violations=[self._suppressed_detail(v) for v in suppressed],
        )

        if result == FORCED_SUCCESS:
            self.logger.warning(f"Forced continuation: {len(active)} active violations ignored for the exit code.")
        self.logger.info(f"Report built. Result: {result}, highest active severity: {highest}.")
        return report, exit_code_for(result)

    @staticmethod
    def _active_detail(v):
        return ActiveViolationDetail(
            violation_code=v.rule.code,
            severity=v.rule.severity.label,
            location=v.target.location,
            message=f"{v.rule.description} detected.",
            sample=sanitize_sample(v.value),
        )

    def _suppressed_detail(self, v):
        return SuppressedViolationDetail(
            violation_code=v.rule.code,
            severity=v.rule.severity.label,
            location=v.target.location,
            message=f"{v.rule.description} detected.",
            suppression=SuppressionInfo(source=f"file:{self.policy_source}"),
        )

    def write(self, report: ScanReport, path):
        try:
            Path(path).write_text(report.to_json(), encoding="utf-8")
        except OSError as e:
            raise GuardianError(
                ExitCode.FILE_READ_FAILED, 'REPORT_WRITE_FAILED',
                f"Failed to write the report to '{path}': {e}") from e
        self.logger.info(f"Report written to {path}")
