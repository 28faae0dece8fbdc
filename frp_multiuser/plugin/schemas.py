"""
Pydantic schemas for the frp server plugin protocol (Login operation).

Only ``content.user`` and ``content.metas["password"]`` are interpreted.
Every other field frp sends (version, op, run_id, client_address, ...) is
accepted and carried along untouched.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class LoginContent(BaseModel):
    """Login payload sent by frps for a connecting frpc client."""
    model_config = ConfigDict(extra="allow")

    user: Optional[str] = None
    metas: Optional[Dict[str, Optional[str]]] = None

    @property
    def password(self) -> str:
        return (self.metas or {}).get("password") or ""


class PluginRequest(BaseModel):
    """Envelope of a plugin call: ``{"version": ..., "op": ..., "content": {...}}``."""
    model_config = ConfigDict(extra="allow")

    version: Optional[str] = None
    op: Optional[str] = None
    content: Optional[LoginContent] = None


class PluginResponse(BaseModel):
    """Decision returned to frps. Exactly one of ``reject``/``unchange`` is set."""
    reject: bool = False
    reject_reason: str = ""
    unchange: bool = False

    @classmethod
    def allow(cls) -> "PluginResponse":
        return cls(unchange=True)

    @classmethod
    def deny(cls, reason: str) -> "PluginResponse":
        return cls(reject=True, reject_reason=reason)


class ErrorBody(BaseModel):
    """Body of every non-200 response."""
    msg: str
