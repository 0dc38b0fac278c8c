"""Exception handling for the host-facing interface."""

from functools import wraps
from typing import Any, Callable

from pydantic import ValidationError

from trueform.client.errors import ErrorKind, TrueFormError
from trueform.helpers.logger import get_logger

logger = get_logger(__name__)


def error_document(kind: ErrorKind, message: str) -> dict[str, Any]:
    return {"error": str(kind), "message": message}


def handle_interface_exceptions(context: str) -> Callable:
    """
    Turn exceptions raised by an interface handler into error documents.

    Classified errors keep their kind. Invalid host input is reported as a
    validation error; anything else is unclassified and logged with its traceback.

    :param context: Name of the operation, used in logs.
    """

    def decorator(func: Callable[..., dict[str, Any]]) -> Callable[..., dict[str, Any]]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> dict[str, Any]:
            try:
                return func(*args, **kwargs)
            except TrueFormError as e:
                logger.error("%s failed: %s", context, e)
                return error_document(e.kind, str(e))
            except ValidationError as e:
                logger.error("%s received invalid input: %s", context, e)
                return error_document(ErrorKind.VALIDATION, f"Invalid input: {e}")
            except ValueError as e:
                logger.error("%s failed: %s", context, e)
                return error_document(ErrorKind.VALIDATION, str(e))
            except Exception as e:
                logger.exception("Unexpected error in %s", context)
                return error_document(ErrorKind.UNCLASSIFIED, str(e))

        return wrapper

    return decorator
