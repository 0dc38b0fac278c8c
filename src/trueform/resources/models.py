"""
Declarative models of the managed resources.

Field presence follows pydantic's ``model_fields_set``: a field the host left
out (unknown) or sent as ``null`` is unset, and unset fields are never sent to
the appliance. Remote keys that differ from the field name are declared in
``REMOTE_KEYS``.
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict


class ResourceModel(BaseModel):
    """Base class for desired and observed resource state."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    # fields read back from the remote configuration and sent in update payloads
    CONFIG_FIELDS: ClassVar[tuple[str, ...]] = ()
    # field name -> remote key, when they differ
    REMOTE_KEYS: ClassVar[dict[str, str]] = {}

    id: Optional[str] = None

    @classmethod
    def remote_key(cls, name: str) -> str:
        return cls.REMOTE_KEYS.get(name, name)

    def is_set(self, name: str) -> bool:
        """True if the field was given a non-null value."""
        return name in self.model_fields_set and getattr(self, name) is not None

    def to_payload(self) -> dict[str, Any]:
        """
        Build the remote update payload from the set configuration fields.

        :return: Remote keys mapped to the values the caller specified.
        """
        return {
            self.remote_key(name): getattr(self, name)
            for name in self.CONFIG_FIELDS
            if self.is_set(name)
        }

    def changed_fields(self, prior: Optional["ResourceModel"]) -> set[str]:
        """
        Names of set configuration fields whose value differs from ``prior``.

        :param prior: Previously observed state, or None when there is none.
        """
        names = {name for name in self.CONFIG_FIELDS if self.is_set(name)}
        if prior is None:
            return names
        return {name for name in names if getattr(self, name) != getattr(prior, name, None)}

    def with_remote_config(self, config: dict[str, Any]) -> "ResourceModel":
        """
        Return a copy updated from a remote configuration object.

        Keys missing from ``config``, or carrying a value of the wrong type, leave
        the field untouched.
        """
        updates = {}
        for name in self.CONFIG_FIELDS:
            key = self.remote_key(name)
            if key not in config:
                continue
            value = _coerce(type(self).model_fields[name].annotation, config[key])
            if value is not _SKIP:
                updates[name] = value
        return self.model_copy(update=updates)


_SKIP = object()


def _coerce(annotation: Any, value: Any) -> Any:
    """Accept a remote value only when it matches the field's declared type."""
    args = getattr(annotation, "__args__", ())
    target = next((a for a in args if a is not type(None)), annotation)
    origin = getattr(target, "__origin__", None)

    if target is bool:
        return value if isinstance(value, bool) else _SKIP
    if target is int:
        # JSON numbers may arrive as floats
        if isinstance(value, bool):
            return _SKIP
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return _SKIP
    if target is str:
        return value if isinstance(value, str) else _SKIP
    if origin is list:
        if not isinstance(value, list):
            return _SKIP
        return [str(v) for v in value]
    return value


class ServiceNFSModel(ResourceModel):
    """
    NFS service configuration.

    Attributes:
        enabled (bool): Whether the NFS service is enabled and running.
        servers (int): Number of NFS server instances to run.
        udp_enabled (bool): Enable UDP transport for NFS (NFSv3 only).
        v4 (bool): Enable the NFSv4 protocol.
        v4_v3owner (bool): Use the NFSv3 ownership model for NFSv4.
        v4_krb (bool): Enable Kerberos for NFSv4.
        bindip (list): IP addresses to bind to; empty means all interfaces.
        mountd_port (int): Port for mountd, 0 for a random port.
        rpcstatd_port (int): Port for rpc.statd, 0 for a random port.
        allow_nonroot (bool): Allow non-root mount requests.
        managed_nfsv4_acl (bool): Enable managed NFSv4 ACL support.
    """

    CONFIG_FIELDS: ClassVar[tuple[str, ...]] = (
        "servers",
        "udp_enabled",
        "v4",
        "v4_v3owner",
        "v4_krb",
        "bindip",
        "mountd_port",
        "rpcstatd_port",
        "allow_nonroot",
        "managed_nfsv4_acl",
    )
    REMOTE_KEYS: ClassVar[dict[str, str]] = {"udp_enabled": "udp"}

    enabled: Optional[bool] = None
    servers: Optional[int] = None
    udp_enabled: Optional[bool] = None
    v4: Optional[bool] = None
    v4_v3owner: Optional[bool] = None
    v4_krb: Optional[bool] = None
    bindip: Optional[list[str]] = None
    mountd_port: Optional[int] = None
    rpcstatd_port: Optional[int] = None
    allow_nonroot: Optional[bool] = None
    managed_nfsv4_acl: Optional[bool] = None


class ServiceDockerModel(ResourceModel):
    """
    Docker/Apps service configuration.

    Attributes:
        pool (str): Storage pool holding Docker/Apps data; empty means unconfigured.
        nvidia (bool): Enable NVIDIA GPU support for containers.
        enable_image_updates (bool): Automatically check for image updates.
        status (str): Current service status (RUNNING, INITIALIZING, STOPPED, ...).
    """

    CONFIG_FIELDS: ClassVar[tuple[str, ...]] = ("pool", "nvidia", "enable_image_updates")

    pool: Optional[str] = None
    nvidia: Optional[bool] = None
    enable_image_updates: Optional[bool] = None
    status: Optional[str] = None
