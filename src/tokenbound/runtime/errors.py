from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

Json = Dict[str, Any]


def encode_error(code: str, reason: str = "", details: Optional[Json] = None) -> bytes:
    """Canonical revert payload for named contract errors."""
    obj: Json = {"error": str(code), "reason": str(reason), "details": details if isinstance(details, dict) else {}}
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_error(data: bytes) -> Optional[Tuple[str, str, Json]]:
    """Return (code, reason, details) for a named-error payload, else None.

    Arbitrary revert payloads from foreign contracts are not required to be
    JSON; they simply do not decode.
    """
    try:
        obj = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(obj, dict) or not isinstance(obj.get("error"), str):
        return None
    details = obj.get("details")
    return obj["error"], str(obj.get("reason") or ""), details if isinstance(details, dict) else {}


class Revert(Exception):
    """Failure of a call frame.

    `data` is the exact revert payload. It crosses frames unchanged.
    """

    def __init__(self, data: bytes = b"") -> None:
        super().__init__(bytes(data))
        self.data = bytes(data)

    def __str__(self) -> str:  # pragma: no cover
        decoded = decode_error(self.data)
        if decoded is None:
            return f"revert:0x{self.data.hex()}"
        code, reason, _ = decoded
        return f"{code}:{reason}" if reason else code


class ContractError(Revert):
    """Named revert raised by host or contract code."""

    code = "ContractError"

    def __init__(self, reason: str = "", details: Optional[Json] = None) -> None:
        self.reason = str(reason)
        self.details: Json = dict(details or {})
        super().__init__(encode_error(self.code, self.reason, self.details))


# Account
class UnauthorizedSigner(ContractError):
    code = "UnauthorizedSigner"


class UnsupportedOperation(ContractError):
    code = "UnsupportedOperation"


# Host
class InsufficientBalance(ContractError):
    code = "InsufficientBalance"


class CallDepthExceeded(ContractError):
    code = "CallDepthExceeded"


class StaticStateChange(ContractError):
    code = "StaticStateChange"


class MalformedCalldata(ContractError):
    code = "MalformedCalldata"


class UnknownFunction(ContractError):
    code = "UnknownFunction"


class MalformedReturnData(ContractError):
    code = "MalformedReturnData"


# Asset registry
class TokenDoesNotExist(ContractError):
    code = "TokenDoesNotExist"


class TokenAlreadyMinted(ContractError):
    code = "TokenAlreadyMinted"


class NotTokenOwner(ContractError):
    code = "NotTokenOwner"


class NotRegistryAdmin(ContractError):
    code = "NotRegistryAdmin"
