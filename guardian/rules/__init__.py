from .library import CustomPattern, PatternFile, RuleLibrary, Severity, ValidationRule
from .catalogue import builtin_definitions
