from __future__ import annotations

import pytest

from tokenbound.runtime.abi import ZERO_ADDRESS, encode_call
from tokenbound.runtime.errors import Revert, decode_error
from tokenbound.testing.world import execute_call, mint, view


def test_owner_of_minted_token(world) -> None:
    assert view(world.host, world.registry, "ownerOf", token_id=5) == world.alice


def test_owner_of_unminted_token_reverts(world) -> None:
    with pytest.raises(Revert) as ei:
        view(world.host, world.registry, "ownerOf", token_id=6)
    code, _, details = decode_error(ei.value.data)
    assert code == "TokenDoesNotExist"
    assert details["token_id"] == 6


def test_only_admin_mints(world) -> None:
    r = world.host.transact(sender=world.alice, to=world.registry, data=encode_call("mint", to=world.alice, token_id=6))
    assert r.error()[0] == "NotRegistryAdmin"


def test_mint_rejects_duplicates_and_null_owner(world) -> None:
    r = world.host.transact(sender=world.admin, to=world.registry, data=encode_call("mint", to=world.carol, token_id=5))
    assert r.error()[0] == "TokenAlreadyMinted"

    r = world.host.transact(sender=world.admin, to=world.registry, data=encode_call("mint", to=ZERO_ADDRESS, token_id=6))
    assert r.error()[0] == "NotTokenOwner"


def test_transfer_requires_current_owner(world) -> None:
    data = encode_call("transferFrom", **{"from": world.alice, "to": world.carol, "token_id": 5})
    r = world.host.transact(sender=world.carol, to=world.registry, data=data)
    assert r.error()[0] == "NotTokenOwner"
    assert view(world.host, world.registry, "ownerOf", token_id=5) == world.alice

    r = world.host.transact(sender=world.alice, to=world.registry, data=data)
    assert r.ok
    assert view(world.host, world.registry, "ownerOf", token_id=5) == world.carol


def test_account_can_move_a_token_it_holds(world) -> None:
    mint(world.host, world.registry, world.admin, world.account, 6)
    move = encode_call("transferFrom", **{"from": world.account, "to": world.carol, "token_id": 6})

    r = world.host.transact(sender=world.alice, to=world.account, data=execute_call(world.registry, move))
    assert r.ok, r.error()
    assert view(world.host, world.registry, "ownerOf", token_id=6) == world.carol
