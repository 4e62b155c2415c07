"""Provider configuration: API credential, endpoint and retry policy.

Configuration is always passed explicitly to the client factory. It can be
built directly, from the environment, or from a YAML file:

```yaml
provider:
  base_url: https://towerops.net
  token_env: TOWEROPS_TOKEN
  timeout: 30
  retries: 3
```
"""
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://towerops.net"
DEFAULT_TOKEN_ENV = "TOWEROPS_TOKEN"
BASE_URL_ENV = "TOWEROPS_BASE_URL"


@dataclass
class ProviderConfig:
    """Configuration for talking to the TowerOps API."""
    token: Optional[str] = None
    token_env: str = DEFAULT_TOKEN_ENV
    base_url: str = DEFAULT_BASE_URL
    timeout: int = 30
    # Transport-level retries for connection failures
    retries: int = 3
    retry_min_wait: float = 1
    retry_max_wait: float = 10
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        if not self.base_url:
            self.base_url = DEFAULT_BASE_URL
        self.base_url = self.base_url.rstrip("/")

    def get_token(self) -> str:
        """Get token from config or environment variable."""
        if self.token:
            return self.token
        return os.environ.get(self.token_env, "")

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty when valid)."""
        problems = []
        if not self.get_token():
            problems.append(
                f"Missing TowerOps API token: set 'token' or the "
                f"{self.token_env} environment variable"
            )
        if not self.base_url.startswith(("http://", "https://")):
            problems.append(f"Invalid base_url: {self.base_url}")
        if self.timeout <= 0:
            problems.append(f"timeout must be positive, got {self.timeout}")
        if self.retries < 1:
            problems.append(f"retries must be at least 1, got {self.retries}")
        return problems

    def require_token(self) -> str:
        """Get the token or raise ConfigError."""
        token = self.get_token()
        if not token:
            raise ConfigError(
                "The provider requires a token to authenticate with the TowerOps API "
                f"(set 'token' or {self.token_env})"
            )
        return token

    def __repr__(self) -> str:
        token = "***" if self.get_token() else None
        return (
            f"ProviderConfig(base_url={self.base_url!r}, token={token}, "
            f"timeout={self.timeout}, retries={self.retries})"
        )

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Build configuration from environment variables only."""
        return cls(base_url=os.environ.get(BASE_URL_ENV, DEFAULT_BASE_URL))

    @classmethod
    def from_dict(cls, data: dict) -> "ProviderConfig":
        """Build configuration from a dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown provider settings: {', '.join(unknown)}")
        config = dict(data)
        # Environment overrides the file for the endpoint, like the token
        if BASE_URL_ENV in os.environ and "base_url" not in config:
            config["base_url"] = os.environ[BASE_URL_ENV]
        return cls(**config)

    @classmethod
    def from_yaml(cls, path: str) -> "ProviderConfig":
        """Load the `provider:` section of a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at top level")

        section = data.get("provider", {}) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"{path}: 'provider' must be a mapping")

        logger.debug(f"Loaded provider configuration from {path}")
        return cls.from_dict(section)


def find_config() -> Optional[str]:
    """Find a towerops.yaml config file in the usual locations."""
    search_paths = [
        Path.cwd() / "towerops.yaml",
        Path.home() / ".config" / "towerops" / "towerops.yaml",
        Path("/etc/towerops/towerops.yaml"),
    ]

    for path in search_paths:
        if path.exists():
            return str(path)
    return None


def load_config(path: Optional[str] = None) -> ProviderConfig:
    """Load provider configuration.

    Uses `path` when given, otherwise the first config file found, otherwise
    the environment alone.
    """
    config_path = path or find_config()
    if config_path is None:
        logger.debug("No towerops.yaml found, using environment configuration")
        return ProviderConfig.from_env()
    return ProviderConfig.from_yaml(config_path)
