from __future__ import annotations

import copy
import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from tokenbound.runtime.abi import ZERO_ADDRESS, normalize_address
from tokenbound.runtime.contract import CallContext, Contract
from tokenbound.runtime.errors import (
    CallDepthExceeded,
    InsufficientBalance,
    Revert,
    StaticStateChange,
    decode_error,
)
from tokenbound.runtime.event_log import log_event
from tokenbound.runtime.metrics import inc_counter, set_gauge

Json = Dict[str, Any]

# Each host frame costs several interpreter frames; 128 stays well inside the
# default recursion limit. Deeper configured limits still fail cleanly.
DEFAULT_MAX_CALL_DEPTH = 128

_log = logging.getLogger("tokenbound.host")


@dataclass(frozen=True)
class Receipt:
    ok: bool
    sender: str
    to: str
    nonce: int
    return_data: bytes = b""
    revert_data: bytes = b""

    def error(self) -> Optional[Tuple[str, str, Json]]:
        """Decoded named error, if the revert payload is one."""
        if self.ok:
            return None
        return decode_error(self.revert_data)

    def to_json(self) -> Json:
        return {
            "ok": bool(self.ok),
            "sender": self.sender,
            "to": self.to,
            "nonce": int(self.nonce),
            "return_data": "0x" + self.return_data.hex(),
            "revert_data": "0x" + self.revert_data.hex(),
        }


class HostError(RuntimeError):
    pass


class Host:
    """Serialized ledger host.

    World state:
      state["balances"][address] -> int
      state["storage"][address]  -> dict (contract-owned, JSON-like)
      state["nonces"][address]   -> int (top-level calls sent)

    Every call frame snapshots the world state and restores it if the frame
    fails, so a failed top-level transaction leaves no trace except the
    sender's consumed nonce. One re-entrant lock serializes transactions and
    reads; nested frames run on the holding thread.
    """

    def __init__(self, *, chain_id: int, max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> None:
        self.chain_id = int(chain_id)
        self.max_call_depth = int(max_call_depth)
        self.state: Json = {"balances": {}, "storage": {}, "nonces": {}}
        self._code: Dict[str, Contract] = {}
        self._lock = threading.RLock()
        self._static_depth = 0
        # Set by boot code (see executor_boot.build_host).
        self.genesis: Any = None

    @property
    def lock(self):
        """The re-entrant lock serializing this host. Hold it to read consistently."""
        return self._lock

    # ----------------------------
    # Code
    # ----------------------------

    def _derive_address(self, contract: Contract) -> str:
        seed = f"tokenbound-deploy:{self.chain_id}:{contract.kind}:{len(self._code)}".encode("utf-8")
        return "0x" + hashlib.sha256(seed).digest()[-20:].hex()

    def deploy(self, contract: Contract, *, address: Optional[str] = None) -> str:
        with self._lock:
            addr = normalize_address(address) if address is not None else self._derive_address(contract)
            if addr in self._code:
                raise HostError(f"address already has code: {addr}")
            if addr == ZERO_ADDRESS:
                raise HostError("cannot deploy at the null address")
            contract.attach(addr)
            self._code[addr] = contract
            self.state["storage"].setdefault(addr, {})
            set_gauge("contracts_deployed", len(self._code))
            return addr

    def code_at(self, address: str) -> Optional[Contract]:
        return self._code.get(str(address).lower())

    def is_contract(self, address: str) -> bool:
        return self.code_at(address) is not None

    # ----------------------------
    # State accessors
    # ----------------------------

    def storage_of(self, address: str) -> Json:
        storage = self.state["storage"]
        cur = storage.get(address)
        if not isinstance(cur, dict):
            cur = {}
            storage[address] = cur
        return cur

    def balance_of(self, address: str) -> int:
        return int(self.state["balances"].get(str(address).lower(), 0))

    def nonce_of(self, address: str) -> int:
        return int(self.state["nonces"].get(str(address).lower(), 0))

    def credit(self, address: str, amount: int) -> None:
        """Create native value out of nothing (genesis and tests)."""
        if int(amount) < 0:
            raise ValueError("credit amount must be >= 0")
        with self._lock:
            addr = normalize_address(address)
            bal = self.state["balances"]
            bal[addr] = int(bal.get(addr, 0)) + int(amount)

    def read_state(self) -> Json:
        with self._lock:
            return copy.deepcopy(self.state)

    def _transfer(self, sender: str, to: str, value: int) -> None:
        if value <= 0:
            return
        bal = self.state["balances"]
        have = int(bal.get(sender, 0))
        if have < value:
            raise InsufficientBalance("insufficient_balance", {"account": sender, "balance": have, "value": value})
        bal[sender] = have - value
        bal[to] = int(bal.get(to, 0)) + value

    # ----------------------------
    # Frames
    # ----------------------------

    def _snapshot(self, depth: int) -> Json:
        try:
            return copy.deepcopy(self.state)
        except RecursionError:
            raise CallDepthExceeded("interpreter_stack_exhausted", {"depth": depth}) from None

    def _frame(self, *, sender: str, to: str, value: int, data: bytes, depth: int) -> bytes:
        if depth > self.max_call_depth:
            raise CallDepthExceeded("max_call_depth", {"depth": depth, "max": self.max_call_depth})
        if value < 0:
            raise InsufficientBalance("negative_value", {"value": value})

        # Anything run below a static frame is static too.
        static = self._static_depth > 0
        if static and value > 0:
            raise StaticStateChange("value_in_static_call", {"to": to, "value": value})

        snapshot = self._snapshot(depth)
        try:
            self._transfer(sender, to, value)
            contract = self._code.get(to)
            if contract is None:
                return b""
            ctx = CallContext(
                host=self,
                sender=sender,
                value=value,
                chain_id=self.chain_id,
                depth=depth,
                static=static,
            )
            return bytes(contract.dispatch(ctx, bytes(data)))
        except RecursionError:
            # The interpreter ran out of stack before max_call_depth was reached.
            self.state = snapshot
            raise CallDepthExceeded("interpreter_stack_exhausted", {"depth": depth}) from None
        except Exception:
            self.state = snapshot
            raise

    def call(self, *, sender: str, to: str, value: int = 0, data: bytes = b"", depth: int = 0) -> bytes:
        """Run a (nested) call frame. A Revert from the callee propagates unchanged.

        Inside a static call the new frame is static as well.
        """
        with self._lock:
            return self._frame(
                sender=normalize_address(sender),
                to=normalize_address(to),
                value=int(value),
                data=data,
                depth=int(depth),
            )

    def static_call(self, *, sender: str, to: str, data: bytes, depth: int = 0) -> bytes:
        """Run a read-only frame. Any state it or its nested frames write is discarded."""
        with self._lock:
            snapshot = self._snapshot(int(depth))
            self._static_depth += 1
            try:
                return self._frame(
                    sender=normalize_address(sender),
                    to=normalize_address(to),
                    value=0,
                    data=data,
                    depth=int(depth),
                )
            finally:
                self._static_depth -= 1
                self.state = snapshot

    def view(self, *, to: str, data: bytes, sender: str = ZERO_ADDRESS) -> bytes:
        return self.static_call(sender=sender, to=to, data=data, depth=0)

    # ----------------------------
    # Transactions
    # ----------------------------

    def transact(self, *, sender: str, to: str, value: int = 0, data: bytes = b"") -> Receipt:
        """Top-level, all-or-nothing call.

        The sender's nonce is consumed whether or not the call commits.
        A Revert becomes a failed receipt; any other exception rolls back and
        propagates.
        """
        with self._lock:
            sender_a = normalize_address(sender)
            to_a = normalize_address(to)
            nonces = self.state["nonces"]
            nonce = int(nonces.get(sender_a, 0)) + 1
            nonces[sender_a] = nonce

            try:
                ret = self._frame(sender=sender_a, to=to_a, value=int(value), data=data, depth=0)
            except Revert as e:
                inc_counter("tx_reverted")
                log_event(_log, "tx_reverted", sender=sender_a, to=to_a, nonce=nonce, revert_data=e.data)
                return Receipt(ok=False, sender=sender_a, to=to_a, nonce=nonce, revert_data=e.data)

            inc_counter("tx_committed")
            log_event(_log, "tx_committed", sender=sender_a, to=to_a, nonce=nonce, return_size=len(ret))
            return Receipt(ok=True, sender=sender_a, to=to_a, nonce=nonce, return_data=ret)
