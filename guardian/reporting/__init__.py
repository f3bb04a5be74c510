from .report import (
    BUILD_FAILURE,
    FORCED_SUCCESS,
    SUCCESS,
    ReportBuilder,
    ScanReport,
    exit_code_for,
    sanitize_sample,
)
