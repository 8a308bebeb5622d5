#!/usr/bin/env python3

"""Production-ish smoke test for a tokenbound node.

It verifies:
  - the host boots from a chain config + genesis file
  - FastAPI app boots and serves /v1/health
  - a signed call through /v1/tx/submit drives an account's execute
  - ownership follows a token transfer

Usage:
  python3 scripts/prod_smoke.py

Optional env overrides:
  TOKENBOUND_SMOKE_CHAIN_ID=31337
"""

from __future__ import annotations

import json
import os
import tempfile

from fastapi.testclient import TestClient

from tokenbound.api.app import create_app
from tokenbound.runtime.abi import encode_call
from tokenbound.testing.sigtools import address_for, sign_call_as
from tokenbound.testing.world import execute_call


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return int(default)


def _submit(c: TestClient, label: str, *, chain_id: int, nonce: int, to: str, data: bytes) -> dict:
    env = sign_call_as(label, {"nonce": nonce, "to": to, "value": 0, "data": "0x" + data.hex()}, chain_id=chain_id)
    r = c.post("/v1/tx/submit", json=env)
    assert r.status_code == 200, r.text
    return r.json()["receipt"]


def main() -> int:
    chain_id = _env_int("TOKENBOUND_SMOKE_CHAIN_ID", 31337)
    alice = address_for("alice")
    carol = address_for("carol")

    with tempfile.TemporaryDirectory(prefix="tokenbound-smoke-") as td:
        genesis_path = os.path.join(td, "genesis.json")
        config_path = os.path.join(td, "chain.json")
        registry = "0x" + "42" * 20

        with open(genesis_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "chain_id": chain_id,
                    "registries": [
                        {
                            "name": "smoke",
                            "address": registry,
                            "admin": address_for("admin"),
                            "tokens": [{"token_id": 1, "owner": alice}],
                        }
                    ],
                    "accounts": [{"registry": "smoke", "token_id": 1}],
                },
                f,
            )
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump({"chain_id": chain_id, "node_id": "smoke-node", "mode": "dev", "genesis_path": genesis_path}, f)

        os.environ["TOKENBOUND_CHAIN_CONFIG_PATH"] = config_path
        app = create_app(boot_runtime=True)
        (account,) = app.state.host.genesis.accounts

        c = TestClient(app)
        r = c.get("/v1/health")
        assert r.status_code == 200, r.text
        assert r.json()["chain_id"] == chain_id

        # The holder drives the account, then hands the token to carol.
        rc = _submit(c, "alice", chain_id=chain_id, nonce=1, to=account, data=execute_call(carol))
        assert rc["ok"] is True, rc

        move = encode_call("transferFrom", **{"from": alice, "to": carol, "token_id": 1})
        rc = _submit(c, "alice", chain_id=chain_id, nonce=2, to=registry, data=move)
        assert rc["ok"] is True, rc

        # The previous holder is now rejected; the new one is accepted.
        rc = _submit(c, "alice", chain_id=chain_id, nonce=3, to=account, data=execute_call(carol))
        assert rc["ok"] is False, rc
        rc = _submit(c, "carol", chain_id=chain_id, nonce=1, to=account, data=execute_call(alice))
        assert rc["ok"] is True, rc

        summary = c.get(f"/v1/accounts/{account}").json()
        assert summary["owner"] == carol, summary
        assert summary["state"] == 2, summary

        print("OK: health + execute + ownership handoff", {"account": account, "state": summary["state"]})
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
