from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from tokenbound.account.account import TokenBoundAccount
from tokenbound.api.errors import ApiError
from tokenbound.runtime.abi import decode_return, encode_call, hex_to_bytes, normalize_address
from tokenbound.runtime.host import Host

Json = Dict[str, Any]


def _host(request: Request) -> Host:
    host = getattr(request.app.state, "host", None)
    if host is None:
        raise ApiError.internal("not_ready", "host not attached to app.state", {})
    return host


def _address(raw: str, *, field: str = "address") -> str:
    try:
        return normalize_address(raw)
    except ValueError:
        raise ApiError.bad_request("bad_address", f"{field} must be a 20-byte 0x-hex address", {field: raw})


def _hex(raw: str, *, field: str, size: int | None = None) -> bytes:
    try:
        b = hex_to_bytes(raw)
    except ValueError:
        raise ApiError.bad_request("bad_hex", f"{field} must be hex", {field: raw})
    if size is not None and len(b) != size:
        raise ApiError.bad_request("bad_hex_size", f"{field} must be {size} bytes", {field: raw, "size": len(b)})
    return b


def _account(request: Request, raw: str) -> str:
    """Resolve a path address to a deployed token-bound account."""
    host = _host(request)
    addr = _address(raw)
    if not isinstance(host.code_at(addr), TokenBoundAccount):
        raise ApiError.not_found("account_not_found", "no token-bound account at address", {"address": addr})
    return addr


def _view(host: Host, to: str, fn: str, **args: Any) -> Any:
    """Read-only call through the host's call boundary."""
    return decode_return(host.view(to=to, data=encode_call(fn, **args)))
