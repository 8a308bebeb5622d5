from __future__ import annotations

import pytest

from tokenbound.account.operations import Operation
from tokenbound.runtime import metrics
from tokenbound.runtime.abi import ZERO_ADDRESS, encode_call
from tokenbound.runtime.errors import Revert, decode_error
from tokenbound.testing.contracts import Relay
from tokenbound.testing.world import execute_call, transfer, view


def _state(world) -> int:
    return int(view(world.host, world.account, "state"))


def test_owner_executes_call_and_gets_target_return_data(world) -> None:
    # Scenario: holder calls a target through the account.
    payload = b"\x00hello\xff"
    r = world.host.transact(
        sender=world.alice,
        to=world.account,
        data=execute_call(world.recorder, encode_call("echo", payload=payload)),
    )

    assert r.ok, r.error()
    assert r.return_data == payload
    assert _state(world) == 1

    recorder_st = world.host.storage_of(world.recorder)
    assert recorder_st["calls"] == 1
    # The target sees the account as its caller.
    assert recorder_st["last_sender"] == world.account
    assert metrics.counter("account_execute") == 1


def test_state_counts_every_successful_execute(world) -> None:
    for i in range(1, 4):
        r = world.host.transact(
            sender=world.alice,
            to=world.account,
            data=execute_call(world.recorder, encode_call("echo", payload=b"")),
        )
        assert r.ok
        assert _state(world) == i


def test_non_owner_is_rejected_and_state_unchanged(world) -> None:
    r = world.host.transact(
        sender=world.carol,
        to=world.account,
        data=execute_call(world.recorder, encode_call("echo", payload=b"x")),
    )

    assert not r.ok
    assert r.error()[0] == "UnauthorizedSigner"
    assert _state(world) == 0
    assert "calls" not in world.host.storage_of(world.recorder)
    assert metrics.counter("account_execute_rejected") == 1


@pytest.mark.parametrize("operation", [Operation.DELEGATECALL, Operation.CREATE, Operation.CREATE2, 7])
def test_owner_with_unsupported_operation_is_rejected(world, operation: int) -> None:
    r = world.host.transact(
        sender=world.alice,
        to=world.account,
        data=execute_call(world.recorder, encode_call("echo", payload=b"x"), operation=int(operation)),
    )

    assert not r.ok
    code, _, details = r.error()
    assert code == "UnsupportedOperation"
    assert details["operation"] == int(operation)
    assert _state(world) == 0


@pytest.mark.parametrize("operation", [Operation.DELEGATECALL, Operation.CREATE, 7])
def test_non_owner_with_unsupported_operation_is_unauthorized(world, operation: int) -> None:
    r = world.host.transact(
        sender=world.carol,
        to=world.account,
        data=execute_call(world.recorder, operation=int(operation)),
    )
    assert r.error()[0] == "UnauthorizedSigner"
    assert _state(world) == 0


def test_failing_target_revert_is_passed_through_verbatim(world) -> None:
    ok = world.host.transact(
        sender=world.alice,
        to=world.account,
        data=execute_call(world.recorder, encode_call("echo", payload=b"")),
    )
    assert ok.ok
    assert _state(world) == 1
    before = world.host.read_state()

    reason = b"\xde\xad\xbe\xef custom failure"
    r = world.host.transact(
        sender=world.alice,
        to=world.account,
        data=execute_call(world.recorder, encode_call("fail", payload=reason)),
    )

    assert not r.ok
    assert r.revert_data == reason
    assert r.error() is None
    assert _state(world) == 1

    after = world.host.read_state()
    assert after["storage"] == before["storage"]
    assert after["balances"] == before["balances"]


def test_value_is_sent_from_the_account_balance(world) -> None:
    world.host.credit(world.account, 50)

    r = world.host.transact(
        sender=world.alice,
        to=world.account,
        data=execute_call(world.recorder, encode_call("echo", payload=b""), value=20),
    )
    assert r.ok
    assert world.host.balance_of(world.account) == 30
    assert world.host.balance_of(world.recorder) == 20
    assert world.host.storage_of(world.recorder)["last_value"] == 20


def test_value_beyond_account_balance_reverts_and_keeps_state(world) -> None:
    r = world.host.transact(
        sender=world.alice,
        to=world.account,
        data=execute_call(world.carol, value=1),
    )
    assert r.error()[0] == "InsufficientBalance"
    assert _state(world) == 0


def test_execute_to_externally_owned_address_returns_empty(world) -> None:
    world.host.credit(world.account, 5)
    r = world.host.transact(sender=world.alice, to=world.account, data=execute_call(world.carol, value=5))
    assert r.ok
    assert r.return_data == b""
    assert world.host.balance_of(world.carol) == 1_005


def test_previous_holder_loses_authority_after_transfer(world) -> None:
    transfer(world.host, world.registry, world.alice, world.carol, 5)

    r = world.host.transact(sender=world.alice, to=world.account, data=execute_call(world.recorder))
    assert r.error()[0] == "UnauthorizedSigner"

    r = world.host.transact(
        sender=world.carol,
        to=world.account,
        data=execute_call(world.recorder, encode_call("echo", payload=b"")),
    )
    assert r.ok
    assert _state(world) == 1


def test_execute_in_static_context_is_rejected(world) -> None:
    with pytest.raises(Revert) as ei:
        world.host.static_call(
            sender=world.alice,
            to=world.account,
            data=execute_call(world.recorder, encode_call("echo", payload=b"")),
        )
    assert decode_error(ei.value.data)[0] == "StaticStateChange"
    assert _state(world) == 0


def test_execute_reached_through_a_nested_call_in_static_context_is_rejected(world) -> None:
    relay = world.host.deploy(Relay(signer=world.alice))
    transfer(world.host, world.registry, world.alice, relay, 5)
    data = encode_call(
        "forward",
        to=world.account,
        value=0,
        data=execute_call(world.recorder, encode_call("echo", payload=b"hi")),
    )

    with pytest.raises(Revert) as ei:
        world.host.static_call(sender=ZERO_ADDRESS, to=relay, data=data)
    assert decode_error(ei.value.data)[0] == "StaticStateChange"
    assert _state(world) == 0

    # The same path as a transaction is not static.
    r = world.host.transact(sender=world.alice, to=relay, data=data)
    assert r.ok, r.error()
    assert r.return_data == b"hi"
    assert _state(world) == 1


def test_execute_with_malformed_arguments_reverts(world) -> None:
    bad = encode_call("execute", to="0x1234", value=0, data=b"", operation=0)
    r = world.host.transact(sender=world.alice, to=world.account, data=bad)
    assert r.error()[0] == "MalformedCalldata"

    bad = encode_call("execute", to=world.recorder, value=-1, data=b"", operation=0)
    r = world.host.transact(sender=world.alice, to=world.account, data=bad)
    assert r.error()[0] == "MalformedCalldata"
    assert _state(world) == 0
