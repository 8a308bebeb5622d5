# src/tokenbound/runtime/genesis_config.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from tokenbound.account.deploy import create_account
from tokenbound.assets.registry import AssetRegistry
from tokenbound.ledger.binding import TokenBinding
from tokenbound.runtime.abi import encode_call, is_address, normalize_address
from tokenbound.runtime.host import Host

Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class GenesisToken:
    token_id: int
    owner: str


@dataclass(frozen=True, slots=True)
class GenesisRegistry:
    name: str
    admin: str
    address: Optional[str] = None
    tokens: List[GenesisToken] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class GenesisAccount:
    registry: str  # registry name or address
    token_id: int
    chain_id: Optional[int] = None  # defaults to the host chain
    salt: int = 0


@dataclass(frozen=True, slots=True)
class GenesisConfig:
    chain_id: Optional[int]
    balances: Dict[str, int] = field(default_factory=dict)
    registries: List[GenesisRegistry] = field(default_factory=list)
    accounts: List[GenesisAccount] = field(default_factory=list)


@dataclass
class GenesisResult:
    registries: Dict[str, str] = field(default_factory=dict)  # name -> address
    accounts: List[str] = field(default_factory=list)


def _opt_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    return int(v)


def parse_genesis(obj: Any) -> GenesisConfig:
    """Parse a genesis object.

    Shape:
      {
        "chain_id": 1,
        "balances": {"0x...": 1000},
        "registries": [
          {"name": "art", "admin": "0x...", "tokens": [{"token_id": 5, "owner": "0x..."}]}
        ],
        "accounts": [{"registry": "art", "token_id": 5, "salt": 0}]
      }
    """
    if not isinstance(obj, dict):
        raise ValueError("genesis config must be a JSON object")

    balances: Dict[str, int] = {}
    raw_bal = obj.get("balances")
    if isinstance(raw_bal, dict):
        for addr, amount in raw_bal.items():
            balances[normalize_address(addr)] = int(amount)

    regs: List[GenesisRegistry] = []
    for rec in obj.get("registries") or []:
        if not isinstance(rec, dict):
            raise ValueError("registry entries must be objects")
        name = str(rec.get("name") or "").strip()
        if not name:
            raise ValueError("registry name is required")
        tokens = [
            GenesisToken(token_id=int(t["token_id"]), owner=normalize_address(t["owner"]))
            for t in (rec.get("tokens") or [])
        ]
        addr = rec.get("address")
        regs.append(
            GenesisRegistry(
                name=name,
                admin=normalize_address(rec.get("admin")),
                address=normalize_address(addr) if addr else None,
                tokens=tokens,
            )
        )

    accts: List[GenesisAccount] = []
    for rec in obj.get("accounts") or []:
        if not isinstance(rec, dict):
            raise ValueError("account entries must be objects")
        accts.append(
            GenesisAccount(
                registry=str(rec.get("registry") or "").strip(),
                token_id=int(rec["token_id"]),
                chain_id=_opt_int(rec.get("chain_id")),
                salt=int(rec.get("salt") or 0),
            )
        )

    return GenesisConfig(chain_id=_opt_int(obj.get("chain_id")), balances=balances, registries=regs, accounts=accts)


def load_genesis(path: str) -> GenesisConfig:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(str(p))
    with p.open("r", encoding="utf-8") as f:
        return parse_genesis(json.load(f))


def apply_genesis(host: Host, cfg: GenesisConfig) -> GenesisResult:
    """Install genesis balances, registries, tokens and accounts on a fresh host."""
    if cfg.chain_id is not None and int(cfg.chain_id) != host.chain_id:
        raise ValueError(f"genesis chain_id {cfg.chain_id} does not match host chain_id {host.chain_id}")

    out = GenesisResult()

    for addr, amount in sorted(cfg.balances.items()):
        host.credit(addr, amount)

    for reg in cfg.registries:
        if reg.name in out.registries:
            raise ValueError(f"duplicate registry name: {reg.name!r}")
        addr = host.deploy(AssetRegistry(admin=reg.admin, name=reg.name), address=reg.address)
        out.registries[reg.name] = addr
        for tok in reg.tokens:
            receipt = host.transact(
                sender=reg.admin,
                to=addr,
                data=encode_call("mint", to=tok.owner, token_id=tok.token_id),
            )
            if not receipt.ok:
                raise ValueError(f"genesis mint failed for {reg.name}#{tok.token_id}: {receipt.error()}")

    for acct in cfg.accounts:
        if acct.registry in out.registries:
            registry = out.registries[acct.registry]
        elif is_address(acct.registry):
            registry = normalize_address(acct.registry)
        else:
            raise ValueError(f"unknown registry for account: {acct.registry!r}")
        chain_id = host.chain_id if acct.chain_id is None else int(acct.chain_id)
        binding = TokenBinding(chain_id=chain_id, registry=registry, token_id=acct.token_id)
        out.accounts.append(create_account(host, binding, salt=acct.salt))

    return out
