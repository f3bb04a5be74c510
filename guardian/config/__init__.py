from .settings import Config
from .files import FileProvider
from .vault import SecretResolver
