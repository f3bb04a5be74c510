from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATIONS_FOUND = 1
    INVALID_CONFIGURATION = 10
    FILE_READ_FAILED = 12
    DATABASE_CONNECTION_FAILED = 20
    SQL_ANALYSIS_FAILED = 21
    SCAN_FAILED = 22
    UNHANDLED_EXCEPTION = 99


class GuardianError(Exception):
    """
    Controlled, expected failure. Carries the process exit code and a stable
    machine-readable error code (e.g. SQL_PARSE_TIMEOUT).
    """

    def __init__(self, exit_code: ExitCode, error_code: str, message: str):
        super().__init__(message)
        self.exit_code = exit_code
        self.error_code = error_code
        self.message = message

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
