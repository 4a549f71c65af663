"""Configuration management for Spica Sync."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from .constants import DEFAULT_MAX_CONCURRENT_OPERATIONS
from .utils.exceptions import ConfigurationError


@dataclass
class InstanceConfig:
    """Connection settings for one Spica instance (source or target)."""

    url: str
    apikey: str
    timeout: int = 30
    verify_ssl: bool = True
    max_connections: int = 50
    max_keepalive: int = 20


@dataclass
class PolicyConfig:
    """
    Policy configuration for a synchronization run.

    Attributes:
        sync_function_env: Include function environment variables in the diff
        max_concurrent_operations: Upper bound on in-flight apply calls per phase
    """

    sync_function_env: bool = False
    max_concurrent_operations: int = DEFAULT_MAX_CONCURRENT_OPERATIONS


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class SyncConfig:
    """
    Complete configuration for a synchronization run.

    The source and target instances are optional here so that a config file
    can carry only policy/logging and leave endpoints to the command line;
    `require_instances()` enforces them right before a run.
    """

    source: InstanceConfig | None = None
    target: InstanceConfig | None = None
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "SyncConfig":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            SyncConfig instance

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file {config_path}: {e}"
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        try:
            source_data = data.get("source")
            target_data = data.get("target")
            source = InstanceConfig(**source_data) if source_data else None
            target = InstanceConfig(**target_data) if target_data else None
            policy = PolicyConfig(**(data.get("policy") or {}))

            logging_data = dict(data.get("logging") or {})
            if logging_data.get("file"):
                logging_data["file"] = Path(logging_data["file"])
            logging = LoggingConfig(**logging_data)
        except TypeError as e:
            raise ConfigurationError(f"Unknown setting in {config_path}: {e}") from e

        return cls(source=source, target=target, policy=policy, logging=logging)

    def to_file(self, config_path: Path) -> None:
        """
        Save configuration to a YAML file.

        Args:
            config_path: Path to save config file
        """
        data = {
            "source": self.source.__dict__ if self.source else None,
            "target": self.target.__dict__ if self.target else None,
            "policy": self.policy.__dict__,
            "logging": {
                k: str(v) if isinstance(v, Path) else v
                for k, v in self.logging.__dict__.items()
                if v is not None
            },
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            SOURCE_URL / SOURCE_APIKEY: Source instance API address and key
            TARGET_URL / TARGET_APIKEY: Target instance API address and key
            INSTANCE_VERIFY_SSL: Set to 'false' to skip certificate checks
            SYNC_FUNCTION_ENV: Set to 'true' to include function env variables
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: 'console' or 'json' (default: console)

        Returns:
            SyncConfig instance

        Raises:
            ConfigurationError: If an instance URL is set without its API key
        """
        verify_ssl = os.environ.get("INSTANCE_VERIFY_SSL", "true").lower() not in (
            "false",
            "0",
            "no",
            "off",
        )

        return cls(
            source=_instance_from_env("SOURCE", verify_ssl),
            target=_instance_from_env("TARGET", verify_ssl),
            policy=PolicyConfig(
                sync_function_env=os.environ.get("SYNC_FUNCTION_ENV", "false").lower()
                in ("true", "1", "yes", "on"),
            ),
            logging=LoggingConfig(
                level=os.environ.get("LOG_LEVEL", "INFO"),
                format=os.environ.get("LOG_FORMAT", "console"),
            ),
        )

    def with_overrides(
        self,
        source_url: str | None = None,
        source_apikey: str | None = None,
        target_url: str | None = None,
        target_apikey: str | None = None,
        sync_function_env: bool | None = None,
        max_concurrent_operations: int | None = None,
    ) -> "SyncConfig":
        """
        Return a copy with command-line values layered over file/env values.

        Args:
            source_url: Source instance API address
            source_apikey: Source instance API key
            target_url: Target instance API address
            target_apikey: Target instance API key
            sync_function_env: Include function env variables in the diff
            max_concurrent_operations: Concurrency bound for apply calls

        Returns:
            New SyncConfig instance
        """
        policy = replace(self.policy)
        if sync_function_env is not None:
            policy.sync_function_env = sync_function_env
        if max_concurrent_operations is not None:
            policy.max_concurrent_operations = max_concurrent_operations

        return replace(
            self,
            source=_merge_instance(self.source, source_url, source_apikey),
            target=_merge_instance(self.target, target_url, target_apikey),
            policy=policy,
        )

    def require_instances(self) -> tuple[InstanceConfig, InstanceConfig]:
        """
        Return the source and target settings, failing if either is missing.

        Raises:
            ConfigurationError: If source or target is not configured
        """
        missing = [
            name for name, value in (("source", self.source), ("target", self.target)) if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing instance configuration for: {', '.join(missing)}. "
                "Pass --source-url/--source-apikey and --target-url/--target-apikey "
                "or provide them in the config file."
            )
        assert self.source is not None and self.target is not None
        return self.source, self.target


def _instance_from_env(prefix: str, verify_ssl: bool) -> InstanceConfig | None:
    url = os.environ.get(f"{prefix}_URL")
    if not url:
        return None

    apikey = os.environ.get(f"{prefix}_APIKEY", "")
    if not apikey:
        raise ConfigurationError(
            f"{prefix}_URL is set but {prefix}_APIKEY is missing. "
            "Please set both to reach the instance."
        )
    return InstanceConfig(url=url, apikey=apikey, verify_ssl=verify_ssl)


def _merge_instance(
    base: InstanceConfig | None, url: str | None, apikey: str | None
) -> InstanceConfig | None:
    if base is None:
        if url and apikey:
            return InstanceConfig(url=url, apikey=apikey)
        if url or apikey:
            raise ConfigurationError("Instance URL and API key must be provided together")
        return None
    return replace(base, url=url or base.url, apikey=apikey or base.apikey)


def load_config(config_file: Path | None = None) -> SyncConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        SyncConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return SyncConfig.from_file(config_file)
    return SyncConfig.from_env()
