"""appsource package exposing the public API."""

from .api import IngestionApiClient
from .config import AppConfig
from .container_config import get_server_configuration
from .models import AuthContext, ServerConfiguration
from .products import AppSourceProducts

__all__ = [
    "AppConfig",
    "AppSourceProducts",
    "AuthContext",
    "IngestionApiClient",
    "ServerConfiguration",
    "get_server_configuration",
]
