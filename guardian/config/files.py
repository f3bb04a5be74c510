import os
import logging
from pydantic import ValidationError
from guardian.errors import ExitCode, GuardianError
from guardian.rules.library import PatternFile
from guardian.suppression.engine import ExceptionPolicy


class FileProvider:
    """Reads the run's input files: the SQL delta, the exception policy and the custom patterns."""

    def __init__(self):
        self.logger = logging.getLogger("FileProvider")

    def read_sql(self, path):
        self.logger.info(f"Reading SQL delta from {path}")
        if not path or not os.path.isfile(path):
            raise GuardianError(
                ExitCode.FILE_READ_FAILED, 'REQUIRED_FILE_NOT_FOUND',
                f"The required SQL file was not found at: {path}")
        try:
            with open(path, encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise GuardianError(
                ExitCode.FILE_READ_FAILED, 'FILE_IO_ERROR',
                f"An I/O error occurred while reading '{path}': {e}") from e

    def load_exceptions(self, path):
        policy = self._load_json(path, ExceptionPolicy, "exceptions")
        if policy is not None:
            policy.source = path
            self.logger.info(f"Loaded exception policy with {len(policy.suppressions)} rule entries.")
        return policy

    def load_patterns(self, path):
        patterns = self._load_json(path, PatternFile, "custom patterns")
        if patterns is not None:
            self.logger.info(f"Loaded {len(patterns.patterns)} custom patterns.")
        return patterns

    def _load_json(self, path, model, label):
        if not path or not os.path.isfile(path):
            self.logger.info(f"Optional {label} file not found at '{path}'. Continuing without it.")
            return None
        try:
            with open(path, encoding='utf-8') as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise GuardianError(
                ExitCode.FILE_READ_FAILED, 'FILE_IO_ERROR',
                f"An I/O error occurred while reading '{path}': {e}") from e

        if not raw.strip():
            self.logger.info(f"Optional {label} file '{path}' is empty. Continuing without it.")
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            raise GuardianError(
                ExitCode.FILE_READ_FAILED, 'JSON_PARSE_ERROR',
                f"Failed to parse the {label} file '{path}': {e}") from e
