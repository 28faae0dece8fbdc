"""
Login verification for frp server plugin requests.

Flow per request:
    raw body --decode_request--> PluginRequest
             --handle_login----> PluginResponse (allow / reject)
             --encode_response-> bytes

Failures that are not a login decision (bad JSON, encoding errors) raise
PluginError carrying the HTTP status the transport should answer with.
"""

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ..credentials.base import BaseCredentialStore
from .schemas import LoginContent, PluginRequest, PluginResponse

EMPTY_CREDENTIALS_REASON = "user or meta password can not be empty"


class PluginError(Exception):
    """A request that cannot produce a login decision."""

    def __init__(self, status: int, msg: str):
        self.status = status
        self.msg = msg
        super().__init__(f"{status} {msg}")


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def decode_request(raw: bytes) -> PluginRequest:
    """
    Parse a plugin request body.

    Raises:
        PluginError: 400 if the body is not valid JSON or does not match the
        envelope shape.
    """
    try:
        return PluginRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise PluginError(400, _describe(exc)) from exc


def handle_login(request: PluginRequest, store: BaseCredentialStore) -> PluginResponse:
    """
    Decide whether the login in ``request`` may proceed.

    Rules:
        - Missing/empty user or password -> reject.
        - Stored password equals the supplied one -> allow unchanged.
        - Anything else (unknown user included) -> reject naming the user.

    Note:
        Passwords are compared as plaintext with ``==``, matching the
        credential file format. See DESIGN.md for the hardening notes.

    LLM Prompt Example:
        "Show how to keep an authorization decision a pure function of the
        request and an injected store so it can be unit tested without HTTP."
    """
    content = request.content or LoginContent()
    user = content.user or ""
    password = content.password
    if not user or not password:
        return PluginResponse.deny(EMPTY_CREDENTIALS_REASON)

    if store.lookup(user) == password:
        return PluginResponse.allow()
    return PluginResponse.deny(f"user: `{user}` invalid password")


def encode_response(response: PluginResponse) -> bytes:
    """
    Serialize a decision for the wire.

    Raises:
        PluginError: 500 if serialization fails.
    """
    try:
        return response.model_dump_json().encode("utf-8")
    except PydanticSerializationError as exc:
        raise PluginError(500, str(exc)) from exc
