"""Transport layer for talking to Spica instances."""

from .client import InstanceClient
from .endpoints import Endpoints

__all__ = ["InstanceClient", "Endpoints"]
