"""Unit tests for the provider and its resource registry."""

import pytest

from trueform.config.provider_config_model import ProviderConfig
from trueform.provider import TrueFormProvider
from trueform.resources import RESOURCE_HANDLERS
from trueform.resources.service_docker import ServiceDockerHandler
from trueform.resources.service_nfs import ServiceNFSHandler


@pytest.fixture
def provider(mock_logger):
    config = ProviderConfig(host="nas.local", api_key="k", job_timeout_sec=42, job_poll_interval_sec=0.5)
    return TrueFormProvider(config, logger=mock_logger)


@pytest.mark.unit
class TestTrueFormProvider:
    def test_registry(self):
        assert RESOURCE_HANDLERS == {
            "trueform_service_nfs": ServiceNFSHandler,
            "trueform_service_docker": ServiceDockerHandler,
        }

    def test_client_from_config(self, provider):
        assert provider.client.url == "https://nas.local/api/current"
        assert not provider.client.connected

    @pytest.mark.parametrize(
        "name,handler_class",
        [
            ("nfs", ServiceNFSHandler),
            ("trueform_service_nfs", ServiceNFSHandler),
            ("docker", ServiceDockerHandler),
        ],
    )
    def test_get_handler(self, provider, name, handler_class):
        handler = provider.get_handler(name)

        assert isinstance(handler, handler_class)
        assert handler.client is provider.client
        assert handler.job_timeout == 42
        assert handler.poll_interval == 0.5

    def test_unknown_type(self, provider):
        with pytest.raises(ValueError, match="Unsupported resource type: smb"):
            provider.get_handler("smb")
