from __future__ import annotations

from tokenbound.crypto.sig import recover_signer
from tokenbound.runtime.abi import ERC1271_MAGIC, ZERO_ADDRESS, decode_return, encode_call, hex_to_bytes
from tokenbound.runtime.contract import CallContext
from tokenbound.runtime.errors import Revert


def is_valid_signature_now(ctx: CallContext, *, signer: str, digest: bytes, signature: bytes, caller: str) -> bool:
    """True iff `signature` over `digest` is currently valid for `signer`.

    - signer without code: recover the address from the signature bundle.
    - signer with code: ask its isValidSignature; only the exact magic value
      counts, and a reverting validator is a rejection.

    A contract signer is re-evaluated on every call, so its verdict for the
    same (digest, signature) may change over time.
    """
    if not signer or signer == ZERO_ADDRESS:
        return False

    if not ctx.host.is_contract(signer):
        return recover_signer(digest=digest, signature=signature) == signer

    try:
        ret = ctx.host.static_call(
            sender=caller,
            to=signer,
            data=encode_call("isValidSignature", hash=bytes(digest), signature=bytes(signature)),
            depth=ctx.depth + 1,
        )
        return hex_to_bytes(decode_return(ret)) == ERC1271_MAGIC
    except (Revert, ValueError):
        return False
