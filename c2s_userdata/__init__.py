"""
c2s_userdata — Game-Progress Webhook Receiver for the C2S Discord
==================================================================
Accepts progress telemetry posted by the game, stores it against a
derived per-player token, and grants Discord roles once progress
thresholds are crossed.

Package layout::

    c2s_userdata/
    ├── __main__.py        # python -m c2s_userdata → uvicorn
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Role keys, labels, thresholds
    ├── errors.py          # UserDataError hierarchy (→ HTTP status)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # PlayerRecord ORM model
    ├── engine/
    │   ├── roles.py       # Threshold engine (pure)
    │   └── tokens.py      # HMAC token derivation (pure)
    ├── services/
    │   ├── userdata_service.py   # Record store operations
    │   ├── progress_service.py   # Update transaction
    │   ├── membership_service.py # discord.py role/DM adapter
    │   └── webhook_log.py        # Discord webhook audit log
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection
        ├── gateway.py     # Request validation
        └── routes/        # /userdata endpoints
"""

__version__ = "0.1.0"
