"""
c2s_userdata.__main__ — Entry point for ``python -m c2s_userdata``
==================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (bind address, guild, role IDs).
3. Hand the app to uvicorn.  The app's lifespan verifies the database,
   ensures the schema exists and logs the Discord client in before the
   first request is accepted.

Run with::

    uv run python -m c2s_userdata
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

from c2s_userdata.config import load_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("c2s_userdata")


def main() -> None:
    """Bootstrap and serve the user-data API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config()
    logger.info("Config loaded — guild %d, %d managed roles", cfg.guild_id, len(cfg.role_ids))

    # 3. Serve.  log_config=None keeps the format configured above.
    logger.info("Listening on %s:%d", cfg.host, cfg.server_port)
    uvicorn.run(
        "c2s_userdata.api.main:app",
        host=cfg.host,
        port=cfg.server_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
