"""Configuration services package.

This package provides the ConfigurationProvider handle and the remote secret
store client it prefers over local environment values.
"""

from .configuration_provider import ConfigurationProvider, ResolvedConfiguration
from .secret_store import HTTPSecretStoreClient, SecretStoreClient, secret_name_for

__all__ = [
    "ConfigurationProvider",
    "ResolvedConfiguration",
    "HTTPSecretStoreClient",
    "SecretStoreClient",
    "secret_name_for",
]
