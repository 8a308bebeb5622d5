# src/tokenbound/runtime/chain_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from tokenbound.runtime.host import DEFAULT_MAX_CALL_DEPTH


def _as_int(v: Any, default: int) -> int:
    if v is None or isinstance(v, bool):
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class HostConfig:
    chain_id: int
    node_id: str
    mode: str  # "dev" | "testnet" | "prod"

    max_call_depth: int

    # Optional genesis JSON (registries, tokens, accounts, balances).
    genesis_path: str

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_MAX_CALL_DEPTH_CEILING = 1024


def validate_chain_config(cfg: HostConfig) -> None:
    """Fail-fast validation for operator config."""

    if int(cfg.chain_id) <= 0:
        raise ValueError(f"chain_id must be a positive integer; got: {cfg.chain_id!r}")

    if not isinstance(cfg.node_id, str) or not cfg.node_id.strip():
        raise ValueError("node_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {sorted(_ALLOWED_MODES)}; got: {cfg.mode!r}")

    if int(cfg.max_call_depth) < 1 or int(cfg.max_call_depth) > _MAX_CALL_DEPTH_CEILING:
        raise ValueError(f"max_call_depth must be 1..{_MAX_CALL_DEPTH_CEILING}; got: {cfg.max_call_depth}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if cfg.genesis_path and not Path(cfg.genesis_path).is_file():
        raise ValueError(f"genesis_path does not exist or is not a file: {cfg.genesis_path!r}")


def default_chain_config() -> HostConfig:
    return HostConfig(
        chain_id=1,
        node_id="local-node",
        # Without an explicit config file we stay in the strict posture.
        mode="prod",
        max_call_depth=DEFAULT_MAX_CALL_DEPTH,
        genesis_path="",
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def read_chain_config_file(path: str) -> HostConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("chain config must be a JSON object")

    d = default_chain_config()

    cfg = HostConfig(
        chain_id=_as_int(raw.get("chain_id"), d.chain_id),
        node_id=_as_str(raw.get("node_id"), d.node_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        max_call_depth=_as_int(raw.get("max_call_depth"), d.max_call_depth),
        genesis_path=str(raw.get("genesis_path") or d.genesis_path),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level).upper(),
    )

    validate_chain_config(cfg)
    return cfg


def load_chain_config(*, config_path: Optional[str] = None) -> HostConfig:
    p = config_path or os.environ.get("TOKENBOUND_CHAIN_CONFIG_PATH")
    if p:
        return read_chain_config_file(p)

    cfg = default_chain_config()
    validate_chain_config(cfg)
    return cfg


def apply_chain_config_to_env(cfg: HostConfig) -> None:
    validate_chain_config(cfg)
    os.environ["TOKENBOUND_CHAIN_ID"] = str(int(cfg.chain_id))
    os.environ["TOKENBOUND_NODE_ID"] = cfg.node_id
    os.environ["TOKENBOUND_MODE"] = (cfg.mode or "prod").strip().lower()
    os.environ["TOKENBOUND_LOG_LEVEL"] = cfg.log_level
