from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict

from tokenbound.runtime.abi import decode_call
from tokenbound.runtime.errors import UnknownFunction

if TYPE_CHECKING:
    from tokenbound.runtime.host import Host

Json = Dict[str, Any]


@dataclass(frozen=True)
class CallContext:
    """Everything a contract may learn about the frame it runs in.

    chain_id is the evaluating context; contracts never read it from globals.
    """

    host: "Host"
    sender: str
    value: int
    chain_id: int
    depth: int = 0
    static: bool = False


class Contract:
    """Code installed at an address on a host.

    Persistent fields live in host storage (see storage()) so frame rollback
    covers them. Attributes set in __init__ are code, not state.

    Rollback and static calls replace the host's state objects: call
    storage() again after any nested call instead of holding the dict.
    """

    kind = "contract"

    def __init__(self) -> None:
        self._address = ""

    @property
    def address(self) -> str:
        return self._address

    def attach(self, address: str) -> None:
        if self._address:
            raise RuntimeError(f"{self.kind} already deployed at {self._address}")
        self._address = str(address)

    def storage(self, ctx: CallContext) -> Json:
        return ctx.host.storage_of(self.address)

    def dispatch(self, ctx: CallContext, data: bytes) -> bytes:
        fn, args = decode_call(data)
        if not fn:
            return self.receive(ctx)
        return self.handle(ctx, fn, args)

    def receive(self, ctx: CallContext) -> bytes:
        raise UnknownFunction("value_transfer_not_accepted", {"contract": self.kind})

    def handle(self, ctx: CallContext, fn: str, args: Json) -> bytes:
        raise UnknownFunction("unknown_function", {"contract": self.kind, "fn": fn})
