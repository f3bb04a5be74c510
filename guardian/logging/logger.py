import logging
import sys
import os
import json
import datetime
from guardian import TOOL_NAME, __version__

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FORENSIC_LOG_FILE = 'pipeline-log.json'
SENSITIVE_MARKERS = ('TOKEN', 'KEY', 'SECRET', 'PASSWORD', 'CONNECTION_STRING')
ENV_PREFIXES = ('GUARDIAN_', 'DB_')
REDACTED = '[REDACTED]'

_forensic_logger_instance = None


def setup_logging(level='INFO', log_file='guardian.log'):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class ForensicLogger:
    """
    Appends one entry per run to pipeline-log.json: tool, version, timestamp
    and the GUARDIAN_* / DB_* environment with secret values redacted.
    """

    def __init__(self, path=FORENSIC_LOG_FILE):
        self.path = path
        self.logger = logging.getLogger("FORENSIC")

    def log_execution(self, environ=None):
        entry = {
            'toolName': TOOL_NAME,
            'toolVersion': __version__,
            'executionTimestamp': datetime.datetime.now(datetime.timezone.utc).isoformat(),
            'configuration': self._configuration(os.environ if environ is None else environ),
        }
        try:
            entries = self._read_entries()
            entries.append(entry)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(entries, f, indent=2)
        except OSError as e:
            self.logger.warning(f"Could not write forensic log entry to {self.path}: {e}")
            return None
        return entry

    def _read_entries(self):
        if not os.path.isfile(self.path):
            return []
        try:
            with open(self.path, encoding='utf-8') as f:
                entries = json.load(f)
        except (ValueError, UnicodeDecodeError):
            self.logger.warning(f"Existing forensic log {self.path} is malformed and will be replaced.")
            return []
        return entries if isinstance(entries, list) else []

    def _configuration(self, environ):
        return {
            k: self._mask(k, v)
            for k, v in sorted(environ.items())
            if k.upper().startswith(ENV_PREFIXES)
        }

    def _mask(self, key, value):
        if any(marker in key.upper() for marker in SENSITIVE_MARKERS):
            return REDACTED
        return value


def get_forensic_logger():
    global _forensic_logger_instance
    if _forensic_logger_instance is None:
        _forensic_logger_instance = ForensicLogger()
    return _forensic_logger_instance
