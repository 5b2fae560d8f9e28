"""
c2s_userdata.constants — Role Keys, Labels & Thresholds
========================================================

Single source of truth for the managed roles and the progress values
that unlock them.  Discord role IDs are *not* here — they live in
``config.yaml`` (``roles:``) so staging and production guilds can differ.
"""

from __future__ import annotations

import enum


# ---------------------------------------------------------------------------
# Managed roles
# ---------------------------------------------------------------------------
class RoleKey(enum.StrEnum):
    """Every role the threshold engine grants or withdraws."""
    REALITY_LEGEND = "reality_legend"
    REALITY_EXPERT = "reality_expert"
    REALITY_EXPLORER = "reality_explorer"
    PALEONTOLOGIST_LEGEND = "paleontologist_legend"
    PROGRESSIVE_PALEONTOLOGIST = "progressive_paleontologist"
    PALEONTOLOGIST = "paleontologist"
    FINDER_OF_SEMBLANCES_SECRETS = "finder_of_semblances_secrets"
    SONIC_SPEEDSTER_OF_SIMULATIONS = "sonic_speedster_of_simulations"
    SIMULATION_SPEEDSTER = "simulation_speedster"
    SHARK_COLLECTOR = "shark_collector"
    BETA_TESTER = "beta_tester"


ROLE_LABELS: dict[RoleKey, str] = {
    RoleKey.REALITY_LEGEND: "Reality Legend",
    RoleKey.REALITY_EXPERT: "Reality Expert",
    RoleKey.REALITY_EXPLORER: "Reality Explorer",
    RoleKey.PALEONTOLOGIST_LEGEND: "Paleontologist Legend",
    RoleKey.PROGRESSIVE_PALEONTOLOGIST: "Progressive Paleontologist",
    RoleKey.PALEONTOLOGIST: "Paleontologist",
    RoleKey.FINDER_OF_SEMBLANCES_SECRETS: "Finder of Semblance's Secrets",
    RoleKey.SONIC_SPEEDSTER_OF_SIMULATIONS: "Sonic Speedster of Simulations",
    RoleKey.SIMULATION_SPEEDSTER: "Simulation Speedster",
    RoleKey.SHARK_COLLECTOR: "Shark Collector",
    RoleKey.BETA_TESTER: "Beta Tester",
}


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------
# Metabit tiers, checked highest first.  The legend tier is 100e12, not 1e12.
METABIT_TIERS: tuple[tuple[float, RoleKey], ...] = (
    (100e12, RoleKey.REALITY_LEGEND),
    (1e12, RoleKey.REALITY_EXPERT),
    (1e9, RoleKey.REALITY_EXPLORER),
)

# Dino prestige = floor((dino_rank - PALEO_PRESTIGE_OFFSET) / PALEO_PRESTIGE_STEP)
PALEO_PRESTIGE_OFFSET = 50
PALEO_PRESTIGE_STEP = 50
PALEO_LEGEND_PRESTIGE = 10
PALEO_PROGRESSIVE_PRESTIGE = 1
PALEONTOLOGIST_MIN_RANK = 26

# Singularity speedrun limits in seconds (inclusive)
SONIC_SPEEDSTER_MAX_SECONDS = 120
SIMULATION_SPEEDSTER_MAX_SECONDS = 300


# ---------------------------------------------------------------------------
# Wire names
# ---------------------------------------------------------------------------
# JSON body field → PlayerRecord column for every updatable field.
UPDATABLE_FIELDS: dict[str, str] = {
    "betaTester": "beta_tester",
    "metabits": "metabits",
    "dino_rank": "dino_rank",
    "prestige_rank": "prestige_rank",
    "singularity_speedrun_time": "singularity_speedrun_time",
    "all_sharks_obtained": "all_sharks_obtained",
    "all_hidden_achievements_obtained": "all_hidden_achievements_obtained",
}

DISTRIBUTION_CHANNEL_HEADER = "x-distribution-channel"
BETA_DISTRIBUTION_CHANNEL = "Beta"
