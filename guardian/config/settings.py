import os
import logging
from dotenv import load_dotenv
from guardian.errors import ExitCode, GuardianError
from guardian.db.dialects import DIALECTS, get_dialect

load_dotenv()

VAULT_PROVIDERS = ('azure', 'aws', 'hashicorp')
TRUTHY = ('true', '1', 'yes', 'on')


class Config:
    """
    Run configuration, read from the environment (and a local .env file).

    Attribute names mirror the environment variables they come from.
    """

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ
        self._errors = []

        # Database connection
        self.DB_CONNECTION_STRING = self._str(env, 'DB_CONNECTION_STRING')
        self.DB_VAULT_KEY = self._str(env, 'DB_VAULT_KEY')
        self.VAULT_PROVIDER = (self._str(env, 'GUARDIAN_VAULT_PROVIDER') or '').lower() or None
        self.VAULT_URL = self._str(env, 'GUARDIAN_VAULT_URL')
        self.VAULT_TOKEN = self._str(env, 'GUARDIAN_VAULT_TOKEN')
        self.DB_PROVIDER = (self._str(env, 'GUARDIAN_DB_PROVIDER') or '').lower() or None

        # Input / output files
        self.SQL_FILE_PATH = self._str(env, 'GUARDIAN_SQL_FILE_PATH')
        self.EXCEPTIONS_FILE_PATH = self._str(env, 'GUARDIAN_EXCEPTIONS_FILE_PATH', './guardian.exceptions.json')
        self.PATTERNS_FILE_PATH = self._str(env, 'GUARDIAN_PATTERNS_FILE_PATH', './guardian.patterns.json')
        self.REPORT_PATH = self._str(env, 'GUARDIAN_REPORT_PATH', './guardian-report.json')

        # Scan tuning
        self.DEFAULT_SCHEMA = self._str(env, 'GUARDIAN_DEFAULT_SCHEMA', 'dbo')
        self.SAMPLE_SIZE = self._int(env, 'GUARDIAN_SAMPLE_SIZE', 1000)
        self.SAMPLE_PERCENT = self._float(env, 'GUARDIAN_SAMPLE_PERCENT', 1.0)
        self.QUERY_TIMEOUT = self._int(env, 'GUARDIAN_QUERY_TIMEOUT', 120)
        self.PARSE_TIMEOUT = self._float(env, 'GUARDIAN_PARSE_TIMEOUT', 10.0)
        self.SECRET_KEY_LENGTH = self._int(env, 'GUARDIAN_SECRET_KEY_LENGTH', 40)
        self.GENERIC_SECRET_MIN_LENGTH = self._int(env, 'GUARDIAN_GENERIC_SECRET_MIN_LENGTH', 16)

        # Operational
        self.CONTINUE_ON_FAILURE = (env.get('GUARDIAN_CONTINUE_ON_FAILURE') or '').strip().lower() in TRUTHY
        self.LOG_LEVEL = (self._str(env, 'GUARDIAN_LOG_LEVEL', 'INFO')).upper()
        self.LOG_FILE = env.get('GUARDIAN_LOG_FILE', 'guardian.log')

    def validate(self):
        errors = list(self._errors)

        has_direct = bool(self.DB_CONNECTION_STRING)
        has_vault_key = bool(self.DB_VAULT_KEY)

        if not has_direct and not has_vault_key:
            errors.append("Database connection is not configured. Set either 'DB_CONNECTION_STRING' or 'DB_VAULT_KEY'.")
        if has_direct and has_vault_key:
            errors.append("Both 'DB_CONNECTION_STRING' and 'DB_VAULT_KEY' are set. Provide only one connection source.")
        if has_vault_key:
            if not self.VAULT_PROVIDER:
                errors.append("'DB_VAULT_KEY' requires 'GUARDIAN_VAULT_PROVIDER'.")
            elif self.VAULT_PROVIDER not in VAULT_PROVIDERS:
                errors.append(f"Unsupported vault provider '{self.VAULT_PROVIDER}'. Expected one of: {', '.join(VAULT_PROVIDERS)}.")
            elif self.VAULT_PROVIDER != 'aws' and not self.VAULT_URL:
                errors.append(f"Vault provider '{self.VAULT_PROVIDER}' requires 'GUARDIAN_VAULT_URL'.")

        if self.DB_PROVIDER and get_dialect(self.DB_PROVIDER) is None:
            errors.append(f"Unsupported database provider '{self.DB_PROVIDER}'. Expected one of: {', '.join(sorted(DIALECTS))}.")

        if not self.SQL_FILE_PATH:
            errors.append("'GUARDIAN_SQL_FILE_PATH' is required.")

        if errors:
            message = "Configuration validation failed with the following errors:\n" + \
                "\n".join(f"  - {e}" for e in errors)
            raise GuardianError(ExitCode.INVALID_CONFIGURATION, 'CONFIG_VALIDATION_FAILED', message)
        return True

    def log(self, logger=None):
        logger = logger or logging.getLogger("Config")
        logger.info("--- Guardian Configuration ---")
        logger.info(f"SQL File Path: {self.SQL_FILE_PATH}")
        logger.info(f"Exceptions File: {self.EXCEPTIONS_FILE_PATH}")
        logger.info(f"Custom Patterns File: {self.PATTERNS_FILE_PATH}")
        logger.info(f"Report Path: {self.REPORT_PATH}")
        if self.DB_CONNECTION_STRING:
            logger.info("Database Connection: Direct Connection String (secret masked)")
        else:
            logger.info(f"Database Connection: Vault Key ({self.DB_VAULT_KEY})")
            logger.info(f"Vault Provider: {self.VAULT_PROVIDER}")
            logger.info(f"Vault URL: {self.VAULT_URL}")
        logger.info(f"Sampling: {self.SAMPLE_SIZE} rows/table, query timeout {self.QUERY_TIMEOUT}s")
        if self.CONTINUE_ON_FAILURE:
            logger.warning(">> EMERGENCY OVERRIDE: Continue on Failure is ENABLED.")
        logger.info("------------------------------")

    def _str(self, env, name, default=None):
        value = env.get(name)
        if value is None or not value.strip():
            return default
        return value.strip()

    def _int(self, env, name, default):
        raw = self._str(env, name)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            self._errors.append(f"'{name}' must be an integer, got '{raw}'.")
            return default
        if value <= 0:
            self._errors.append(f"'{name}' must be positive, got {value}.")
            return default
        return value

    def _float(self, env, name, default):
        raw = self._str(env, name)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError:
            self._errors.append(f"'{name}' must be a number, got '{raw}'.")
            return default
        if value <= 0:
            self._errors.append(f"'{name}' must be positive, got {value}.")
            return default
        return value
