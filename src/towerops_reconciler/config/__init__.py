"""Provider configuration loading."""
from .settings import DEFAULT_BASE_URL, ProviderConfig, find_config, load_config

__all__ = ["ProviderConfig", "DEFAULT_BASE_URL", "find_config", "load_config"]
