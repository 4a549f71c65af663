"""Custom exceptions for Spica Sync.

Exception Hierarchy:
-------------------
SyncError (base)
├── ConfigurationError
│   └── UnknownModuleError       # --modules names a module nobody registered
├── DiscoveryError               # Listing parent resources on the source failed
├── SynchronizerStateError       # synchronize()/preview before analyze()
└── InstanceAPIError (base for transport errors)
    ├── ResourceNotFoundError        # HTTP 404
    └── InstanceAuthenticationError  # HTTP 401 / 403

Error Recovery Strategy:
-----------------------
1. ConfigurationError and DiscoveryError are fatal. They are raised before
   any create/update/delete call reaches the target instance.
2. ResourceNotFoundError while reading the *target* instance means the
   resource kind has never been synchronized there; it is read as an empty set.
3. Any InstanceAPIError raised by a single create/update/delete call is
   converted into an ApplyFailure record by the apply executor and never
   cancels sibling calls.
"""


class SyncError(Exception):
    """Base exception for all synchronization errors."""

    pass


class ConfigurationError(SyncError):
    """Raised when the run is misconfigured."""

    pass


class UnknownModuleError(ConfigurationError):
    """Raised when a requested module name is not registered."""

    def __init__(self, module_name: str, available: list[str]) -> None:
        """
        Initialize UnknownModuleError.

        Args:
            module_name: The module name that could not be matched.
            available: Module names that are registered.
        """
        super().__init__(
            f"Module {module_name} does not exist. Available modules: {', '.join(available)}"
        )
        self.module_name = module_name
        self.available = available


class DiscoveryError(SyncError):
    """Raised when parent resources cannot be discovered on the source instance."""

    def __init__(self, module_name: str, message: str) -> None:
        """
        Initialize DiscoveryError.

        Args:
            module_name: Module whose discovery failed.
            message: Underlying error message.
        """
        super().__init__(f"Failed to discover {module_name} resources on source: {message}")
        self.module_name = module_name


class SynchronizerStateError(SyncError):
    """Raised when a synchronizer is used before it has been analyzed."""

    pass


class InstanceAPIError(SyncError):
    """Base exception for Spica instance API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """
        Initialize InstanceAPIError.

        Args:
            message: Error message.
            status_code: Optional HTTP status code.
        """
        super().__init__(message)
        self.status_code = status_code


class ResourceNotFoundError(InstanceAPIError):
    """Raised when the instance answers 404 Not Found."""

    def __init__(self, path: str, message: str = "Not Found") -> None:
        """
        Initialize ResourceNotFoundError.

        Args:
            path: Requested path.
            message: Server message.
        """
        super().__init__(f"Resource not found ({path}): {message}", status_code=404)
        self.path = path


class InstanceAuthenticationError(InstanceAPIError):
    """Raised when the instance rejects the API key."""

    def __init__(self, message: str = "Authentication failed", status_code: int = 401) -> None:
        super().__init__(message, status_code=status_code)
