"""Resource lifecycle commands for the interface layer."""

import threading
from typing import Any, Optional

from trueform.interface.error_handling import handle_interface_exceptions
from trueform.resources.models import ResourceModel

ACTIONS = ("create", "read", "update", "delete")


def _model_from(handler, input_data: dict[str, Any], key: str, action: str) -> ResourceModel:
    raw = input_data.get(key)
    if raw is None:
        raise ValueError(f"'{key}' is required for '{action}'")
    if not isinstance(raw, dict):
        raise ValueError(f"'{key}' must be a JSON object")
    return handler.model.model_validate(raw)


def _state_document(model: Optional[ResourceModel]) -> dict[str, Any]:
    if model is None:
        return {"state": None, "removed": True}
    return {"state": model.model_dump(exclude_none=True)}


@handle_interface_exceptions(context="resource_action")
def handle_resource_action(
    provider,
    resource: str,
    action: str,
    input_data: Optional[dict[str, Any]] = None,
    cancel: Optional[threading.Event] = None,
) -> dict[str, Any]:
    """
    Run one lifecycle operation against a resource.

    Args:
        provider: Connected provider
        resource: Resource type name or alias (``nfs``, ``docker``)
        action: One of create, read, update, delete
        input_data: ``{"plan": {...}, "state": {...}}`` from the host
        cancel: Cancellation event

    Returns:
        ``{"state": {...}}`` with the observed state, or
        ``{"state": null, "removed": true}`` when the resource is absent
    """
    if action not in ACTIONS:
        raise ValueError(f"Unsupported action: {action}")
    input_data = input_data or {}
    if not isinstance(input_data, dict):
        raise ValueError("Input data must be a JSON object")

    handler = provider.get_handler(resource)

    if action == "create":
        plan = _model_from(handler, input_data, "plan", action)
        return _state_document(handler.create(plan, cancel))

    if action == "read":
        state = _model_from(handler, input_data, "state", action)
        return _state_document(handler.read(state, cancel))

    if action == "update":
        plan = _model_from(handler, input_data, "plan", action)
        state = _model_from(handler, input_data, "state", action)
        return _state_document(handler.update(plan, state, cancel))

    state = _model_from(handler, input_data, "state", action)
    handler.delete(state, cancel)
    return _state_document(None)
