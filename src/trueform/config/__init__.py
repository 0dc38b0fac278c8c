"""Provider configuration."""

from trueform.config.provider_config_handler import ConfigurationError, ProviderConfigManager
from trueform.config.provider_config_model import ProviderConfig

__all__ = ["ConfigurationError", "ProviderConfig", "ProviderConfigManager"]
