from __future__ import annotations

from tokenbound.ledger.binding import TokenBinding
from tokenbound.runtime.abi import ZERO_ADDRESS, decode_return, encode_call, normalize_address
from tokenbound.runtime.contract import CallContext
from tokenbound.runtime.errors import MalformedReturnData


def current_controller(ctx: CallContext, binding: TokenBinding, *, caller: str) -> str:
    """Holder of the bound token, as the registry reports it right now.

    A binding recorded for another chain is inert: the controller is the
    null address and the registry is not consulted. Registry failures (for
    example an unminted token) propagate.
    """
    if binding.chain_id != ctx.chain_id:
        return ZERO_ADDRESS

    data = encode_call("ownerOf", token_id=binding.token_id)
    ret = ctx.host.static_call(sender=caller, to=binding.registry, data=data, depth=ctx.depth + 1)
    try:
        return normalize_address(decode_return(ret))
    except ValueError:
        raise MalformedReturnData("bad_owner", {"registry": binding.registry, "token_id": binding.token_id})


def is_controller(ctx: CallContext, binding: TokenBinding, candidate: str, *, caller: str) -> bool:
    """Default signer policy: only the current controller, never the null address."""
    controller = current_controller(ctx, binding, caller=caller)
    return controller != ZERO_ADDRESS and candidate == controller
