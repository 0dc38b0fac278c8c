import os
from typing import Any, Optional

from dynaconf import Dynaconf
from pydantic import ValidationError

from trueform.client.errors import ErrorKind, TrueFormError
from trueform.config.provider_config_model import ProviderConfig
from trueform.helpers.logger import get_logger

logger = get_logger(__name__)

ENVVAR_PREFIX = "TRUEFORM"
DEFAULT_CONFIG_FILE = "trueform_config.json"

_STRING_FIELDS = ("host", "api_key", "username", "password", "log_dir", "log_filename")


class ConfigurationError(TrueFormError):
    """The provider configuration is missing or invalid."""

    kind = ErrorKind.VALIDATION


def load_settings(config_file: Optional[str] = None) -> Dynaconf:
    """
    Build the dynaconf settings object.

    Values come from the JSON settings file, overlaid with ``TRUEFORM_*``
    environment variables.

    :param config_file: Settings file; defaults to ``TRUEFORM_CONFIG_PATH`` or
        ``trueform_config.json`` in the working directory.
    :return: The loaded settings.
    """
    config_file = config_file or os.environ.get("TRUEFORM_CONFIG_PATH", DEFAULT_CONFIG_FILE)
    return Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[config_file],
        environments=False,
        load_dotenv=False,
    )


def config_from_settings(settings: Dynaconf) -> ProviderConfig:
    """
    Validate raw settings into a ProviderConfig.

    :param settings: Loaded dynaconf settings.
    :return: The validated configuration.
    :raises ConfigurationError: If required values are missing or invalid.
    """
    raw: dict[str, Any] = {}
    for key, value in settings.as_dict().items():
        name = key.lower()
        if name not in ProviderConfig.model_fields:
            continue
        if name in _STRING_FIELDS and value is not None:
            # environment values are parsed as TOML, so numeric-looking keys arrive as ints
            value = str(value)
        raw[name] = value

    try:
        return ProviderConfig(**raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid provider configuration - {problems}") from e


class ProviderConfigManager:
    """
    Singleton class to manage provider configuration.

    Loads the configuration once per process and provides access to its values.
    """

    _instance = None
    _config: Optional[ProviderConfig] = None

    def __new__(cls):
        if cls._instance is None:
            instance = super(ProviderConfigManager, cls).__new__(cls)
            instance._load_config()
            cls._instance = instance
        return cls._instance

    def _load_config(self) -> None:
        settings = load_settings()
        self._config = config_from_settings(settings)
        logger.info(
            "Configuration loaded for host %s (auth=%s)",
            self._config.host,
            "api_key" if self._config.api_key else "password",
        )

    @classmethod
    def get(cls, key: str, default=None):
        """
        Retrieve a specific configuration value by key.

        :param key: The name of the configuration key.
        :param default: The default value to return if the key is not set.
        :return: The value of the configuration key or the default value.
        """
        value = getattr(cls.get_config(), key, None)
        return default if value is None else value

    @classmethod
    def get_config(cls) -> ProviderConfig:
        """Retrieve the entire ProviderConfig object."""
        if cls._instance is None:
            cls()
        return cls._instance._config

    @classmethod
    def reload(cls) -> ProviderConfig:
        """
        Reload the configuration from file and environment.

        :raises ConfigurationError: If validation fails for any required fields.
        """
        cls._instance = None
        config = cls.get_config()
        logger.info("Provider configuration reloaded successfully.")
        return config

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded configuration."""
        cls._instance = None

    def __repr__(self) -> str:
        return f"ProviderConfigManager(config={self._config!r})"
