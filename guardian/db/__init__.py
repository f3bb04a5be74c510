from .connector import ConnectionInfo, DatabaseConnector, ResolvedTable
from .dialects import DIALECTS, SamplingDialect, delta_dialect, get_dialect
