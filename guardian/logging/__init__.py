from .logger import ForensicLogger, get_forensic_logger, setup_logging
