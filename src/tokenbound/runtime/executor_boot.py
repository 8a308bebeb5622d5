# src/tokenbound/runtime/executor_boot.py

from __future__ import annotations

import logging
from typing import Optional

from tokenbound.runtime.chain_config import HostConfig, load_chain_config
from tokenbound.runtime.event_log import log_event
from tokenbound.runtime.genesis_config import GenesisResult, apply_genesis, load_genesis
from tokenbound.runtime.host import Host

_log = logging.getLogger("tokenbound.boot")


def build_host(cfg: Optional[HostConfig] = None) -> Host:
    """
    Build a Host from an explicit config or, if omitted, from
    TOKENBOUND_CHAIN_CONFIG_PATH / defaults, and install genesis if configured.

    The genesis result is attached as `host.genesis`.
    """
    c = cfg or load_chain_config()
    host = Host(chain_id=c.chain_id, max_call_depth=c.max_call_depth)

    result = GenesisResult()
    if c.genesis_path:
        result = apply_genesis(host, load_genesis(c.genesis_path))
    host.genesis = result

    log_event(
        _log,
        "host_booted",
        chain_id=host.chain_id,
        node_id=c.node_id,
        mode=c.mode,
        registries=sorted(result.registries.values()),
        accounts=list(result.accounts),
    )
    return host
