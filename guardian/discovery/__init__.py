from .delta import DeltaParser, ScanTarget
from .scanner import DatabaseScanner, SampledTable, SkippedTable, Violation
