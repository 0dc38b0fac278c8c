"""Provider: the shared client and the registry of resource handlers."""

from typing import Callable, Optional

import requests

from trueform.client.client import Client
from trueform.config.provider_config_model import ProviderConfig
from trueform.domain.ports import LoggingPort
from trueform.infrastructure.logging_adapter import LoggingAdapter
from trueform.resources import RESOURCE_ALIASES, RESOURCE_HANDLERS, ResourceHandler


class TrueFormProvider:
    """
    Entry point the orchestration host talks to.

    Holds one client for the whole process and hands out resource handlers bound
    to it, with job timeouts taken from the configuration.
    """

    def __init__(
        self,
        config: ProviderConfig,
        logger: Optional[LoggingPort] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.config = config
        self._logger = logger or LoggingAdapter("trueform.provider")
        self.client = Client(
            host=config.host,
            api_key=config.api_key,
            username=config.username,
            password=config.password,
            verify_ssl=config.verify_ssl,
            connect_timeout=config.connect_timeout_sec,
            request_timeout=config.request_timeout_sec,
            logger=self._logger,
            session_factory=session_factory,
        )

    @staticmethod
    def resource_types() -> list[str]:
        """Names of every resource type the provider manages."""
        return sorted(RESOURCE_HANDLERS)

    @staticmethod
    def resolve_type(name: str) -> str:
        """Map a short alias such as ``nfs`` to its full type name."""
        return RESOURCE_ALIASES.get(name, name)

    def get_handler(self, type_name: str) -> ResourceHandler:
        """
        Build the handler for a resource type.

        :param type_name: Full type name or short alias.
        :return: A handler sharing the provider's client.
        :raises ValueError: If the type is not registered.
        """
        handler_class = RESOURCE_HANDLERS.get(self.resolve_type(type_name))
        if handler_class is None:
            raise ValueError(
                f"Unsupported resource type: {type_name}. "
                f"Supported types: {', '.join(self.resource_types())}"
            )
        return handler_class(
            self.client,
            self._logger,
            job_timeout=self.config.job_timeout_sec,
            poll_interval=self.config.job_poll_interval_sec,
        )

    def connect(self) -> "TrueFormProvider":
        self.client.connect()
        return self

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "TrueFormProvider":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
