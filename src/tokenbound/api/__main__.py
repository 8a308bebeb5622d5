# src/tokenbound/api/__main__.py
from __future__ import annotations

import uvicorn

from tokenbound.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so TOKENBOUND_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from tokenbound.api.app import create_app
    from tokenbound.runtime.chain_config import apply_chain_config_to_env, load_chain_config

    cfg = load_chain_config()
    apply_chain_config_to_env(cfg)

    uvicorn.run(create_app(), host=cfg.api_host, port=int(cfg.api_port), log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
