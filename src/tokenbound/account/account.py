from __future__ import annotations

"""tokenbound.account.account

Token-bound account contract.

Authority over the account belongs to whoever currently holds the bound
token. The binding is read from the immutable footer; the holder is asked of
the registry on every check and never cached.

Call surface (canonical-JSON calldata, see tokenbound.runtime.abi):

  owner()                                   -> address
  token()                                   -> [chain_id, registry, token_id]
  state()                                   -> int
  isValidSigner(signer, context)            -> bytes4 magic
  isValidSignature(hash, signature)         -> bytes4 magic
  supportsInterface(interface_id)           -> bool
  execute(to, value, data, operation)       -> raw return data of the target
  <empty calldata>                          -> accepts value, returns b""
"""

import logging
from typing import Any, Dict, FrozenSet, Tuple

from tokenbound.account.guard import current_controller, is_controller
from tokenbound.account.operations import Operation
from tokenbound.account.signature_checker import is_valid_signature_now
from tokenbound.ledger.binding import TokenBinding, decode_footer
from tokenbound.runtime.abi import (
    ERC1271_MAGIC,
    INTERFACE_ERC165,
    INTERFACE_EXECUTABLE,
    INTERFACE_TOKEN_BOUND_ACCOUNT,
    INVALID_MAGIC,
    IS_VALID_SIGNER_MAGIC,
    arg_address,
    arg_bytes,
    arg_int,
    encode_return,
)
from tokenbound.runtime.contract import CallContext, Contract
from tokenbound.runtime.errors import StaticStateChange, UnauthorizedSigner, UnsupportedOperation
from tokenbound.runtime.event_log import log_event
from tokenbound.runtime.metrics import inc_counter

Json = Dict[str, Any]

_log = logging.getLogger("tokenbound.account")


class TokenBoundAccount(Contract):
    kind = "token_bound_account"

    SUPPORTED_OPERATIONS: FrozenSet[Operation] = frozenset({Operation.CALL})
    INTERFACES: FrozenSet[bytes] = frozenset({INTERFACE_ERC165, INTERFACE_TOKEN_BOUND_ACCOUNT, INTERFACE_EXECUTABLE})

    def __init__(self, footer: bytes) -> None:
        super().__init__()
        decode_footer(footer)
        self._footer = bytes(footer)

    @property
    def footer(self) -> bytes:
        return self._footer

    # ----------------------------
    # Identity
    # ----------------------------

    def binding(self) -> TokenBinding:
        _, binding = decode_footer(self._footer)
        return binding

    def salt(self) -> int:
        salt, _ = decode_footer(self._footer)
        return salt

    def get_binding(self) -> Tuple[int, str, int]:
        """(chain_id, registry, token_id) this account is bound to."""
        return self.binding().as_tuple()

    # ----------------------------
    # Authorization
    # ----------------------------

    def owner(self, ctx: CallContext) -> str:
        return current_controller(ctx, self.binding(), caller=self.address)

    def _is_valid_signer(self, ctx: CallContext, signer: str) -> bool:
        """Signer policy. Subclasses may widen or narrow it."""
        return is_controller(ctx, self.binding(), signer, caller=self.address)

    def is_valid_signer(self, ctx: CallContext, signer: str, context: bytes = b"") -> bytes:
        if self._is_valid_signer(ctx, signer):
            return IS_VALID_SIGNER_MAGIC
        return INVALID_MAGIC

    def is_valid_signature(self, ctx: CallContext, digest: bytes, signature: bytes) -> bytes:
        ok = is_valid_signature_now(
            ctx,
            signer=self.owner(ctx),
            digest=digest,
            signature=signature,
            caller=self.address,
        )
        return ERC1271_MAGIC if ok else INVALID_MAGIC

    def supports_interface(self, interface_id: bytes) -> bool:
        return bytes(interface_id) in self.INTERFACES

    # ----------------------------
    # State counter
    # ----------------------------

    def state(self, ctx: CallContext) -> int:
        return int(self.storage(ctx).get("state", 0))

    def _advance_state(self, ctx: CallContext) -> int:
        st = self.storage(ctx)
        nxt = int(st.get("state", 0)) + 1
        st["state"] = nxt
        return nxt

    # ----------------------------
    # Execution
    # ----------------------------

    def execute(self, ctx: CallContext, to: str, value: int, data: bytes, operation: int) -> bytes:
        """Perform an operation as this account.

        Checks, in order and before any write: the caller must be a valid
        signer, then the operation must be supported. The state counter is
        advanced before dispatch, so re-entrant calls see the new value. A
        failing target's revert propagates unchanged.
        """
        if not self._is_valid_signer(ctx, ctx.sender):
            inc_counter("account_execute_rejected")
            raise UnauthorizedSigner("caller_not_valid_signer", {"account": self.address, "caller": ctx.sender})

        op = Operation.parse(operation)
        if op is None or op not in self.SUPPORTED_OPERATIONS:
            inc_counter("account_execute_rejected")
            raise UnsupportedOperation("operation_not_supported", {"account": self.address, "operation": int(operation)})

        if ctx.static:
            raise StaticStateChange("execute_in_static_call", {"account": self.address})

        state = self._advance_state(ctx)
        inc_counter("account_execute")
        log_event(_log, "account_execute", account=self.address, to=to, value=int(value), state=state, depth=ctx.depth)
        return self._perform(ctx, op, to, value, data)

    def _perform(self, ctx: CallContext, op: Operation, to: str, value: int, data: bytes) -> bytes:
        """Dispatch a supported operation. Only CALL in the base account."""
        return ctx.host.call(sender=self.address, to=to, value=value, data=data, depth=ctx.depth + 1)

    def receive(self, ctx: CallContext) -> bytes:
        return b""

    # ----------------------------
    # Call surface
    # ----------------------------

    def handle(self, ctx: CallContext, fn: str, args: Json) -> bytes:
        if fn == "execute":
            return self.execute(
                ctx,
                arg_address(args, "to"),
                arg_int(args, "value"),
                arg_bytes(args, "data"),
                arg_int(args, "operation"),
            )
        if fn == "owner":
            return encode_return(self.owner(ctx))
        if fn == "token":
            return encode_return(list(self.get_binding()))
        if fn == "state":
            return encode_return(self.state(ctx))
        if fn == "isValidSigner":
            return encode_return(self.is_valid_signer(ctx, arg_address(args, "signer"), arg_bytes(args, "context")))
        if fn == "isValidSignature":
            return encode_return(
                self.is_valid_signature(ctx, arg_bytes(args, "hash", size=32), arg_bytes(args, "signature"))
            )
        if fn == "supportsInterface":
            return encode_return(self.supports_interface(arg_bytes(args, "interface_id", size=4)))
        return super().handle(ctx, fn, args)
