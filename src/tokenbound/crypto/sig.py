# src/tokenbound/crypto/sig.py
from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

Json = Dict[str, Any]

PUBKEY_SIZE = 32
ED25519_SIG_SIZE = 64
# A signature bundle carries the signer's public key ahead of the raw ed25519
# signature so the signer address can be recovered from the bundle alone.
SIGNATURE_BUNDLE_SIZE = PUBKEY_SIZE + ED25519_SIG_SIZE


def _decode_bytes(s: str) -> bytes:
    s = s.strip()
    if s[:2] in {"0x", "0X"}:
        s = s[2:]
    if not s:
        raise ValueError("empty string")
    # hex
    try:
        return bytes.fromhex(s)
    except ValueError:
        pass
    # base64 / base64url
    try:
        padding = "=" * (-len(s) % 4)
        s2 = (s + padding).replace("-", "+").replace("_", "/")
        return base64.b64decode(s2, validate=True)
    except ValueError as e:
        raise ValueError("not hex or base64") from e


def address_from_pubkey(pubkey: bytes | str) -> str:
    """Externally owned address: last 20 bytes of sha256(raw pubkey)."""
    pk_b = _decode_bytes(pubkey) if isinstance(pubkey, str) else bytes(pubkey)
    if len(pk_b) != PUBKEY_SIZE:
        raise ValueError("ed25519 pubkey must be 32 bytes")
    return "0x" + hashlib.sha256(pk_b).digest()[-20:].hex()


def pubkey_bytes(key: Ed25519PrivateKey) -> bytes:
    return key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def load_private_key(privkey: str) -> Ed25519PrivateKey:
    """privkey: hex or base64/base64url string of a 32-byte seed (or 64-byte expanded key)."""
    pk_b = _decode_bytes(privkey)
    if len(pk_b) == 64:
        pk_b = pk_b[:32]
    if len(pk_b) != 32:
        raise ValueError("ed25519 privkey must be 32-byte seed (or 64-byte expanded key)")
    return Ed25519PrivateKey.from_private_bytes(pk_b)


def verify_ed25519_signature(*, message: bytes, sig: bytes, pubkey: bytes) -> bool:
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes(pubkey))
        key.verify(bytes(sig), bytes(message))
        return True
    except (InvalidSignature, ValueError):
        return False


def sign_digest(*, digest: bytes, key: Ed25519PrivateKey) -> bytes:
    """Return a signature bundle (pubkey || ed25519 signature) over digest."""
    return pubkey_bytes(key) + key.sign(bytes(digest))


def recover_signer(*, digest: bytes, signature: bytes) -> Optional[str]:
    """Recover the signer address from a signature bundle.

    Returns None for malformed bundles or signatures that do not verify.
    Never raises for well-typed input.
    """
    sig_b = bytes(signature)
    if len(sig_b) != SIGNATURE_BUNDLE_SIZE:
        return None
    pk_b, raw_sig = sig_b[:PUBKEY_SIZE], sig_b[PUBKEY_SIZE:]
    if not verify_ed25519_signature(message=digest, sig=raw_sig, pubkey=pk_b):
        return None
    return address_from_pubkey(pk_b)


def canonical_call_message(
    *,
    chain_id: int,
    signer: str,
    nonce: int,
    to: str,
    value: int,
    data: str,
) -> bytes:
    """Bytes signed by an externally owned key to authorize a top-level call.

    `signer` is the hex pubkey; chain_id binds the envelope to one host.
    """
    obj: Json = {
        "chain_id": int(chain_id),
        "signer": str(signer),
        "nonce": int(nonce),
        "to": str(to),
        "value": int(value),
        "data": str(data),
    }
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sign_call_envelope_dict(*, env: Json, chain_id: int, privkey: str) -> Json:
    """Return a copy of env with its 'sig' field populated (hex).

    Expected shape (extra keys allowed):
      {
        "signer": "<pubkey hex>",
        "nonce": int,
        "to": "0x...",
        "value": int,
        "data": "0x..."
      }
    """
    key = load_private_key(privkey)
    signer = pubkey_bytes(key).hex()
    msg = canonical_call_message(
        chain_id=chain_id,
        signer=signer,
        nonce=int(env.get("nonce") or 0),
        to=str(env.get("to") or ""),
        value=int(env.get("value") or 0),
        data=str(env.get("data") or "0x"),
    )
    out = dict(env)
    out["signer"] = signer
    out["sig"] = key.sign(msg).hex()
    return out


def verify_call_envelope(*, env: Json, chain_id: int) -> bool:
    try:
        pk_b = _decode_bytes(str(env.get("signer") or ""))
        sig_b = _decode_bytes(str(env.get("sig") or ""))
        msg = canonical_call_message(
            chain_id=chain_id,
            signer=str(env.get("signer") or "").strip(),
            nonce=int(env.get("nonce") or 0),
            to=str(env.get("to") or ""),
            value=int(env.get("value") or 0),
            data=str(env.get("data") or "0x"),
        )
    except (TypeError, ValueError):
        return False
    return verify_ed25519_signature(message=msg, sig=sig_b, pubkey=pk_b)
