from __future__ import annotations

import hashlib

import pytest

from tokenbound.account.deploy import create_account
from tokenbound.ledger.binding import TokenBinding
from tokenbound.runtime.abi import ERC1271_MAGIC, INVALID_MAGIC, encode_call
from tokenbound.runtime.errors import Revert, decode_error
from tokenbound.testing.contracts import Relay
from tokenbound.testing.sigtools import sign_digest_as
from tokenbound.testing.world import transfer, view

DIGEST = hashlib.sha256(b"order #1").digest()


def _check(world, account: str, digest: bytes, signature: bytes) -> bytes:
    ret = view(world.host, account, "isValidSignature", hash=digest, signature=signature)
    return bytes.fromhex(ret[2:])


def test_owner_signature_is_valid(world) -> None:
    sig = sign_digest_as("alice", DIGEST)
    assert _check(world, world.account, DIGEST, sig) == ERC1271_MAGIC


def test_non_owner_signature_is_invalid(world) -> None:
    sig = sign_digest_as("carol", DIGEST)
    assert _check(world, world.account, DIGEST, sig) == INVALID_MAGIC


def test_signature_over_other_digest_is_invalid(world) -> None:
    sig = sign_digest_as("alice", hashlib.sha256(b"order #2").digest())
    assert _check(world, world.account, DIGEST, sig) == INVALID_MAGIC


@pytest.mark.parametrize("signature", [b"", b"\x01" * 10, b"\x00" * 96, b"\x02" * 200])
def test_malformed_signature_is_invalid_not_an_error(world, signature: bytes) -> None:
    assert _check(world, world.account, DIGEST, signature) == INVALID_MAGIC


def test_tampered_signature_is_invalid(world) -> None:
    sig = bytearray(sign_digest_as("alice", DIGEST))
    sig[-1] ^= 0x01
    assert _check(world, world.account, DIGEST, bytes(sig)) == INVALID_MAGIC


def test_signature_validity_follows_token_transfers(world) -> None:
    alice_sig = sign_digest_as("alice", DIGEST)
    carol_sig = sign_digest_as("carol", DIGEST)

    transfer(world.host, world.registry, world.alice, world.carol, 5)

    assert _check(world, world.account, DIGEST, alice_sig) == INVALID_MAGIC
    assert _check(world, world.account, DIGEST, carol_sig) == ERC1271_MAGIC


def test_cross_chain_account_rejects_every_signature(world) -> None:
    foreign = create_account(world.host, TokenBinding(chain_id=10, registry=world.registry, token_id=5))
    sig = sign_digest_as("alice", DIGEST)
    assert _check(world, foreign, DIGEST, sig) == INVALID_MAGIC


def test_contract_owner_signature_is_delegated(world) -> None:
    relay = world.host.deploy(Relay(signer=world.alice))
    transfer(world.host, world.registry, world.alice, relay, 5)
    sig = sign_digest_as("alice", DIGEST)

    assert _check(world, world.account, DIGEST, sig) == ERC1271_MAGIC
    assert _check(world, world.account, DIGEST, sign_digest_as("carol", DIGEST)) == INVALID_MAGIC


def test_contract_owner_verdict_may_change_between_calls(world) -> None:
    relay = world.host.deploy(Relay(signer=world.alice))
    transfer(world.host, world.registry, world.alice, relay, 5)
    sig = sign_digest_as("alice", DIGEST)
    assert _check(world, world.account, DIGEST, sig) == ERC1271_MAGIC

    r = world.host.transact(sender=world.alice, to=relay, data=encode_call("setEnabled", enabled=False))
    assert r.ok
    assert _check(world, world.account, DIGEST, sig) == INVALID_MAGIC

    r = world.host.transact(sender=world.alice, to=relay, data=encode_call("setEnabled", enabled=True))
    assert r.ok
    assert _check(world, world.account, DIGEST, sig) == ERC1271_MAGIC


def test_contract_owner_without_validator_is_invalid(world) -> None:
    # The recorder has no isValidSignature; its revert is a rejection.
    transfer(world.host, world.registry, world.alice, world.recorder, 5)
    sig = sign_digest_as("alice", DIGEST)
    assert _check(world, world.account, DIGEST, sig) == INVALID_MAGIC


def test_hash_must_be_32_bytes(world) -> None:
    with pytest.raises(Revert) as ei:
        view(world.host, world.account, "isValidSignature", hash=b"\x01" * 31, signature=b"")
    assert decode_error(ei.value.data)[0] == "MalformedCalldata"


def test_unminted_token_signature_check_reverts(world) -> None:
    acct = create_account(world.host, TokenBinding(chain_id=1, registry=world.registry, token_id=404))
    with pytest.raises(Revert) as ei:
        view(world.host, acct, "isValidSignature", hash=DIGEST, signature=sign_digest_as("alice", DIGEST))
    assert decode_error(ei.value.data)[0] == "TokenDoesNotExist"
