from __future__ import annotations

import hashlib

from tokenbound.crypto.sig import (
    SIGNATURE_BUNDLE_SIZE,
    address_from_pubkey,
    canonical_call_message,
    load_private_key,
    pubkey_bytes,
    recover_signer,
    sign_digest,
    verify_call_envelope,
)
from tokenbound.testing.sigtools import address_for, deterministic_ed25519_keypair, seed_hex, sign_call_as


def test_keypairs_are_deterministic() -> None:
    pk1, _ = deterministic_ed25519_keypair(label="alice")
    pk2, sk = deterministic_ed25519_keypair(label="alice")
    assert pk1 == pk2
    assert pubkey_bytes(load_private_key(seed_hex(label="alice"))).hex() == pk1
    assert pubkey_bytes(sk).hex() == pk1
    assert address_for("alice") == address_from_pubkey(pk1)
    assert address_for("alice") != address_for("bob")


def test_address_from_pubkey_accepts_hex_and_bytes() -> None:
    pk_hex, _ = deterministic_ed25519_keypair(label="k")
    assert address_from_pubkey(pk_hex) == address_from_pubkey(bytes.fromhex(pk_hex))
    assert address_from_pubkey("0x" + pk_hex) == address_from_pubkey(pk_hex)
    assert len(address_from_pubkey(pk_hex)) == 42


def test_recover_signer() -> None:
    _, sk = deterministic_ed25519_keypair(label="alice")
    digest = hashlib.sha256(b"m").digest()
    bundle = sign_digest(digest=digest, key=sk)

    assert len(bundle) == SIGNATURE_BUNDLE_SIZE
    assert recover_signer(digest=digest, signature=bundle) == address_for("alice")
    assert recover_signer(digest=hashlib.sha256(b"n").digest(), signature=bundle) is None
    assert recover_signer(digest=digest, signature=bundle[:-1]) is None
    assert recover_signer(digest=digest, signature=b"") is None


def test_swapped_pubkey_does_not_recover_as_someone_else() -> None:
    _, sk = deterministic_ed25519_keypair(label="alice")
    bob_pk, _ = deterministic_ed25519_keypair(label="bob")
    digest = hashlib.sha256(b"m").digest()
    bundle = sign_digest(digest=digest, key=sk)

    forged = bytes.fromhex(bob_pk) + bundle[32:]
    assert recover_signer(digest=digest, signature=forged) is None


def test_call_message_is_canonical() -> None:
    a = canonical_call_message(chain_id=1, signer="ab", nonce=1, to="0x01", value=0, data="0x")
    b = canonical_call_message(chain_id=1, signer="ab", nonce=1, to="0x01", value=0, data="0x")
    c = canonical_call_message(chain_id=2, signer="ab", nonce=1, to="0x01", value=0, data="0x")
    assert a == b
    assert a != c
    assert a.startswith(b'{"chain_id":1,')


def test_envelope_signature_binds_chain() -> None:
    env = sign_call_as("alice", {"nonce": 1, "to": "0x" + "11" * 20, "value": 0, "data": "0x"}, chain_id=1)
    assert verify_call_envelope(env=env, chain_id=1)
    assert not verify_call_envelope(env=env, chain_id=2)
    assert not verify_call_envelope(env=dict(env, sig=""), chain_id=1)
