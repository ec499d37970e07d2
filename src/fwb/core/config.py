"""Configuration management using Pydantic.

Provides:
- Typed configuration models with validation
- YAML file loading with defaults
- Environment variable overrides (FWB_*)
- Configuration initialization and display
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fwb.core.exceptions import ConfigurationError, ValidationError
from fwb.core.validation import validate_table_name


# Default configuration paths
DEFAULT_CONFIG_PATH = Path("/etc/fwb/config.yaml")
DEFAULT_AUDIT_LOG_PATH = Path("/var/log/fwb/audit.log")

# Engines the factory knows about
VALID_MODES = ("pf", "iptables", "nftables")


class PfConfig(BaseModel):
    """pf packet filter settings."""

    pfctl_path: str = "/sbin/pfctl"
    device: str = "/dev/pf"
    blacklists_ipv4: str = "crowdsec-blacklists"
    blacklists_ipv6: str = "crowdsec6-blacklists"

    @field_validator("blacklists_ipv4", "blacklists_ipv6")
    @classmethod
    def validate_table(cls, v: str) -> str:
        try:
            return validate_table_name(v)
        except ValidationError as e:
            raise ValueError(e.message) from e


class AuditConfig(BaseModel):
    """Audit trail settings."""

    enabled: bool = True
    log_path: Path = DEFAULT_AUDIT_LOG_PATH


class BouncerConfig(BaseModel):
    """Root configuration model.

    Loaded from /etc/fwb/config.yaml; every field has a default so the
    file is optional.
    """

    mode: str = "pf"
    disable_ipv6: bool = False

    pf: PfConfig = Field(default_factory=PfConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_MODES:
            raise ValueError(f"Mode must be one of: {list(VALID_MODES)}")
        return v

    @classmethod
    def load(cls, path: Path) -> "BouncerConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If file not found or invalid
        """
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                hint="Create it with: fwb config init",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {path}",
                details=[str(e)],
            ) from e
        except PermissionError:
            raise ConfigurationError(
                f"Cannot read configuration file: {path}",
                hint="Check file permissions or run with sudo",
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {path}",
            )

        try:
            return cls(**data)
        except Exception as e:
            raise ConfigurationError(
                f"Invalid configuration: {path}",
                details=[str(e)],
            ) from e

    @classmethod
    def load_or_default(cls, path: Optional[Path] = None) -> "BouncerConfig":
        """Load configuration, falling back to defaults if file doesn't exist.

        Args:
            path: Path to configuration file (uses default if None)

        Returns:
            Loaded or default configuration
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        if path.exists():
            return cls.load(path)
        return cls()

    def to_yaml(self) -> str:
        """Convert configuration to YAML string."""
        data = self.model_dump(mode="json", exclude_none=True)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)


class EnvOverrides(BaseSettings):
    """Overrides loaded from environment variables.

    FWB_MODE and FWB_DISABLE_IPV6 take precedence over the config file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FWB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mode: Optional[str] = None
    disable_ipv6: Optional[bool] = None


class AppConfig:
    """Application configuration combining config file and environment.

    This is the main interface for accessing configuration throughout the app.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[BouncerConfig] = None,
    ) -> None:
        """Initialize application configuration.

        Args:
            config_path: Path to config file (uses default if None)
            config: Pre-loaded config (skips file loading if provided)
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        base = config or BouncerConfig.load_or_default(self.config_path)
        self._config = self._apply_overrides(base, EnvOverrides())

    @staticmethod
    def _apply_overrides(config: BouncerConfig, env: EnvOverrides) -> BouncerConfig:
        updates = env.model_dump(exclude_none=True)
        if not updates:
            return config
        try:
            return BouncerConfig(**{**config.model_dump(), **updates})
        except Exception as e:
            raise ConfigurationError(
                "Invalid FWB_* environment override",
                details=[str(e)],
            ) from e

    @property
    def config(self) -> BouncerConfig:
        """Get the bouncer configuration."""
        return self._config

    @property
    def mode(self) -> str:
        """Shortcut to the selected firewall engine."""
        return self._config.mode

    @property
    def disable_ipv6(self) -> bool:
        """Shortcut to the IPv6 switch."""
        return self._config.disable_ipv6

    @property
    def pf(self) -> PfConfig:
        """Shortcut to pf config."""
        return self._config.pf

    @property
    def audit(self) -> AuditConfig:
        """Shortcut to audit config."""
        return self._config.audit


def get_example_config() -> str:
    """Generate example configuration file content."""
    return """# Firewall bouncer configuration
# Environment overrides: FWB_MODE, FWB_DISABLE_IPV6

mode: pf  # pf, iptables, nftables
disable_ipv6: false

# pf packet filter (OpenBSD/FreeBSD)
# Tables must be declared in pf.conf, e.g.:
#   table <crowdsec-blacklists> persist
#   table <crowdsec6-blacklists> persist
pf:
  pfctl_path: /sbin/pfctl
  device: /dev/pf
  blacklists_ipv4: crowdsec-blacklists
  blacklists_ipv6: crowdsec6-blacklists

# JSON audit trail of applied decisions
audit:
  enabled: true
  log_path: /var/log/fwb/audit.log
"""


def init_config(path: Path, force: bool = False) -> None:
    """Initialize a new configuration file.

    Args:
        path: Path to create config file
        force: Overwrite if exists

    Raises:
        ConfigurationError: If file exists and force is False
    """
    if path.exists() and not force:
        raise ConfigurationError(
            f"Configuration file already exists: {path}",
            hint="Use --force to overwrite",
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_example_config())
    os.chmod(path, 0o600)
