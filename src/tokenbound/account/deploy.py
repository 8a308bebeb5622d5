from __future__ import annotations

import hashlib
import logging

from tokenbound.account.account import TokenBoundAccount
from tokenbound.ledger.binding import TokenBinding, encode_footer
from tokenbound.runtime.event_log import log_event
from tokenbound.runtime.host import Host
from tokenbound.runtime.metrics import inc_counter

_log = logging.getLogger("tokenbound.account")


def account_address(binding: TokenBinding, *, salt: int = 0) -> str:
    """Deterministic address of the account for (binding, salt)."""
    footer = encode_footer(binding, salt=salt)
    return "0x" + hashlib.sha256(b"tokenbound-account" + footer).digest()[-20:].hex()


def create_account(host: Host, binding: TokenBinding, *, salt: int = 0) -> str:
    """Deploy the account for (binding, salt), or return it if it already exists.

    The footer is written here, once; nothing can rewrite it afterwards.
    """
    addr = account_address(binding, salt=salt)
    existing = host.code_at(addr)
    if isinstance(existing, TokenBoundAccount):
        return addr

    host.deploy(TokenBoundAccount(encode_footer(binding, salt=salt)), address=addr)
    inc_counter("accounts_created")
    log_event(
        _log,
        "account_created",
        account=addr,
        chain_id=binding.chain_id,
        registry=binding.registry,
        token_id=binding.token_id,
        salt=int(salt),
    )
    return addr
