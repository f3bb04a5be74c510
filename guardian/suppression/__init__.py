from .engine import ExceptionPolicy, SuppressionEngine, SuppressionLocation
