"""
c2s_userdata.config — YAML Configuration Loader
================================================

Reads ``config.yaml`` for **infrastructure-only** settings: the Discord
guild, the bind address, and the role IDs the threshold engine manages.
Secrets (``USERDATA_AUTH``, ``DISCORD_TOKEN``, ``DATABASE_URL``) stay in
``.env`` and are never read from here.

Usage::

    from c2s_userdata.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.guild_id)
    print(cfg.role_ids[RoleKey.BETA_TESTER])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from c2s_userdata.constants import RoleKey


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class UserDataConfig:
    """Immutable configuration loaded from ``config.yaml``.

    ``role_ids`` are the *managed* roles, recomputed on every update.
    ``persistent_role_ids`` are carried through untouched whenever the
    member already holds them (staff, boosters, cosmetic roles).
    """

    # Discord
    guild_id: int
    role_ids: dict[RoleKey, int]
    persistent_role_ids: frozenset[int] = field(default_factory=frozenset)

    # HTTP
    host: str = "0.0.0.0"
    server_port: int = 3000


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> UserDataConfig:
    """Read *path* and return a :class:`UserDataConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key (including any managed role) is missing.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    roles: dict = raw["roles"]
    missing = [key.value for key in RoleKey if key.value not in roles]
    if missing:
        raise KeyError(f"config.yaml is missing role IDs for: {', '.join(missing)}")

    return UserDataConfig(
        guild_id=int(raw["guild_id"]),
        role_ids={key: int(roles[key.value]) for key in RoleKey},
        persistent_role_ids=frozenset(int(r) for r in raw.get("persistent_roles") or []),
        host=str(raw.get("host", "0.0.0.0")),
        server_port=int(raw.get("server_port", 3000)),
    )
