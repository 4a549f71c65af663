"""Utility functions and exceptions."""

from .exceptions import (
    ConfigurationError,
    DiscoveryError,
    InstanceAPIError,
    InstanceAuthenticationError,
    ResourceNotFoundError,
    SyncError,
    SynchronizerStateError,
    UnknownModuleError,
)

__all__ = [
    "SyncError",
    "ConfigurationError",
    "UnknownModuleError",
    "DiscoveryError",
    "SynchronizerStateError",
    "InstanceAPIError",
    "ResourceNotFoundError",
    "InstanceAuthenticationError",
]
