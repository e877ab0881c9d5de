from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import httpx
from pydantic import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    """
    The closed set of failure kinds the client distinguishes.

    - VALIDATION: local pre-flight check failed; no remote call was made
    - AUTH: the gateway rejected credentials or a session operation
    - STORE: a remote task operation failed (including authorization and not-found)
    - NETWORK: transport-level failure; callers handle it like AUTH/STORE
    """

    VALIDATION = "validation"
    AUTH = "auth"
    STORE = "store"
    NETWORK = "network"


# PUBLIC_INTERFACE
class ClientError(Exception):
    """
    The single exception type raised by the client, tagged with an ErrorKind.

    Attributes:
        kind: Which failure this is.
        message: Human-readable text, suitable for a notification.
        field: For VALIDATION, the first violated input field.
        status: HTTP status code when the remote answered.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        field: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.kind is ErrorKind.STORE and self.status == 404

    def __repr__(self) -> str:
        return f"ClientError(kind={self.kind.value!r}, message={self.message!r}, field={self.field!r}, status={self.status!r})"


def validation_error(field: str, message: str) -> ClientError:
    return ClientError(ErrorKind.VALIDATION, message, field=field)


def _message_from_body(response: httpx.Response) -> Optional[str]:
    """Pull the service's message out of an error body: 'message', else a string 'detail'."""
    try:
        body: Any = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    return None


def from_response(kind: ErrorKind, response: httpx.Response, fallback: str) -> ClientError:
    """Convert a non-2xx response into a ClientError of the given kind."""
    return ClientError(
        kind,
        _message_from_body(response) or fallback,
        status=response.status_code,
    )


def from_transport(exc: httpx.HTTPError) -> ClientError:
    """Convert an httpx transport failure into a NETWORK error."""
    return ClientError(ErrorKind.NETWORK, str(exc) or exc.__class__.__name__)


def decode_body(kind: ErrorKind, response: httpx.Response, fallback: str, parse: Callable[[Any], T]) -> T:
    """
    Parse a 2xx body with `parse`.

    A body that is not JSON, or JSON that does not match the expected shape,
    becomes a ClientError of the given kind carrying the fallback message.
    """
    try:
        return parse(response.json())
    except (ValueError, ValidationError) as e:
        logger.warning("Malformed %s response from %s: %s", response.status_code, response.request.url, e)
        raise ClientError(kind, fallback, status=response.status_code) from e
