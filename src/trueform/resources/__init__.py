"""Resource handlers and their registry."""

from trueform.resources.base import ResourceHandler
from trueform.resources.service_docker import ServiceDockerHandler
from trueform.resources.service_nfs import ServiceNFSHandler

RESOURCE_HANDLERS: dict[str, type[ResourceHandler]] = {
    handler.type_name: handler for handler in (ServiceNFSHandler, ServiceDockerHandler)
}

# Short names accepted on the command line
RESOURCE_ALIASES = {
    "nfs": ServiceNFSHandler.type_name,
    "docker": ServiceDockerHandler.type_name,
}

__all__ = [
    "RESOURCE_ALIASES",
    "RESOURCE_HANDLERS",
    "ResourceHandler",
    "ServiceDockerHandler",
    "ServiceNFSHandler",
]
