from __future__ import annotations

import hashlib
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from tokenbound.crypto.sig import address_from_pubkey, pubkey_bytes, sign_call_envelope_dict, sign_digest

Json = Dict[str, Any]


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def deterministic_ed25519_keypair(*, label: str) -> Tuple[str, Ed25519PrivateKey]:
    """Deterministically derive an Ed25519 keypair from a stable label.

    TEST ONLY.

    Returns:
      (pubkey_hex, private_key)
    """
    seed = _sha256(("tokenbound-test-ed25519:" + (label or "")).encode("utf-8"))
    sk = Ed25519PrivateKey.from_private_bytes(seed)
    return pubkey_bytes(sk).hex(), sk


def seed_hex(*, label: str) -> str:
    return _sha256(("tokenbound-test-ed25519:" + (label or "")).encode("utf-8")).hex()


def address_for(label: str) -> str:
    """Externally owned address for a label."""
    pk_hex, _ = deterministic_ed25519_keypair(label=label)
    return address_from_pubkey(pk_hex)


def sign_digest_as(label: str, digest: bytes) -> bytes:
    """Signature bundle over digest by the label's key."""
    _, sk = deterministic_ed25519_keypair(label=label)
    return sign_digest(digest=digest, key=sk)


def sign_call_as(label: str, env: Json, *, chain_id: int) -> Json:
    """Return env signed by the label's key (signer field filled in)."""
    return sign_call_envelope_dict(env=env, chain_id=chain_id, privkey=seed_hex(label=label))
