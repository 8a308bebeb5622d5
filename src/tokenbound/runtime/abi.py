from __future__ import annotations

"""tokenbound.runtime.abi

Call codec for the host.

Calldata and return data are canonical JSON (sorted keys, compact separators,
UTF-8), the same encoding used for signed envelopes:

  calldata    = {"fn": "<name>", "args": {...}}
  return data = {"ret": <value>}

Bytes values travel as "0x"-prefixed lowercase hex strings. Empty calldata is
a plain value transfer.

A contract may also return raw bytes that are not produced by encode_return
(the account's `execute` passes a target's return data through untouched), so
callers decode return data only when they know the callee encodes it.
"""

import json
from typing import Any, Dict, Tuple

from tokenbound.runtime.errors import MalformedCalldata, MalformedReturnData

Json = Dict[str, Any]

ZERO_ADDRESS = "0x" + "00" * 20

# 4-byte magic values and interface identifiers.
INVALID_MAGIC = bytes(4)
ERC1271_MAGIC = bytes.fromhex("1626ba7e")  # isValidSignature(bytes32,bytes)
IS_VALID_SIGNER_MAGIC = bytes.fromhex("523e3260")  # isValidSigner(address,bytes)

INTERFACE_ERC165 = bytes.fromhex("01ffc9a7")
INTERFACE_TOKEN_BOUND_ACCOUNT = bytes.fromhex("6faff5f1")
INTERFACE_EXECUTABLE = bytes.fromhex("51945447")
INTERFACE_ERC721 = bytes.fromhex("80ac58cd")


def _canon_json(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _to_wire(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, dict):
        return {str(k): _to_wire(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_to_wire(x) for x in v]
    return v


def hex_to_bytes(v: Any) -> bytes:
    """Decode a "0x"-prefixed (or bare) hex string. Raises ValueError."""
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    if not isinstance(v, str):
        raise ValueError("expected hex string")
    s = v.strip()
    if s[:2] in {"0x", "0X"}:
        s = s[2:]
    return bytes.fromhex(s)


def normalize_address(v: Any) -> str:
    """Return the canonical lowercase form of a 20-byte address. Raises ValueError."""
    raw = hex_to_bytes(v)
    if len(raw) != 20:
        raise ValueError(f"address must be 20 bytes; got {len(raw)}")
    return "0x" + raw.hex()


def is_address(v: Any) -> bool:
    try:
        normalize_address(v)
    except ValueError:
        return False
    return True


# ----------------------------
# Calldata
# ----------------------------


def encode_call(fn: str, **args: Any) -> bytes:
    return _canon_json({"fn": str(fn), "args": _to_wire(args)})


def decode_call(data: bytes) -> Tuple[str, Json]:
    """Return (fn, args). Empty calldata decodes to ("", {})."""
    if not data:
        return "", {}
    try:
        obj = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise MalformedCalldata("not_canonical_json", {"size": len(data)})
    if not isinstance(obj, dict) or not isinstance(obj.get("fn"), str):
        raise MalformedCalldata("missing_fn")
    args = obj.get("args")
    if args is None:
        args = {}
    if not isinstance(args, dict):
        raise MalformedCalldata("args_not_object", {"fn": obj["fn"]})
    return obj["fn"], args


def arg_int(args: Json, name: str) -> int:
    v = args.get(name)
    if isinstance(v, bool) or not isinstance(v, int):
        raise MalformedCalldata("bad_int_arg", {"arg": name})
    if v < 0:
        raise MalformedCalldata("negative_int_arg", {"arg": name})
    return v


def arg_bytes(args: Json, name: str, *, size: int | None = None) -> bytes:
    try:
        raw = hex_to_bytes(args.get(name, "0x"))
    except ValueError:
        raise MalformedCalldata("bad_bytes_arg", {"arg": name})
    if size is not None and len(raw) != size:
        raise MalformedCalldata("bad_bytes_size", {"arg": name, "expected": size, "got": len(raw)})
    return raw


def arg_address(args: Json, name: str) -> str:
    try:
        return normalize_address(args.get(name))
    except ValueError:
        raise MalformedCalldata("bad_address_arg", {"arg": name})


# ----------------------------
# Return data
# ----------------------------


def encode_return(value: Any) -> bytes:
    return _canon_json({"ret": _to_wire(value)})


def decode_return(data: bytes) -> Any:
    try:
        obj = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise MalformedReturnData("not_canonical_json", {"size": len(data)})
    if not isinstance(obj, dict) or "ret" not in obj:
        raise MalformedReturnData("missing_ret")
    return obj["ret"]
