import sys
import logging
from guardian import TOOL_NAME, __version__
from guardian.config import Config
from guardian.errors import ExitCode, GuardianError
from guardian.execution import GuardianRunner
from guardian.logging import get_forensic_logger, setup_logging


def run(config=None):
    """Runs one scan and returns the process exit code."""
    config = config or Config()
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    logger = logging.getLogger("Main")

    print("\n=========================================")
    print(f"   {TOOL_NAME.upper()} v{__version__} (DATA GOVERNANCE)")
    print("=========================================")

    get_forensic_logger().log_execution()

    try:
        return int(GuardianRunner(config).run())
    except GuardianError as e:
        logger.critical(f"FATAL [Code: {e.error_code}]: {e.message}")
        return int(e.exit_code)
    except Exception as e:
        logger.critical(f"An unhandled exception occurred: {e}", exc_info=True)
        return int(ExitCode.UNHANDLED_EXCEPTION)


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
