"""
c2s_userdata.engine.roles — Role Threshold Engine
==================================================

Maps a progress snapshot plus the member's currently held Discord roles
to the full set of roles they should hold, and the labels of the roles
they are gaining for the first time.

Rules are evaluated in a fixed order (metabit → paleo → simulation →
beta).  Each rule is a pure function ``snapshot → list[RoleKey]``; the
order of :data:`TIER_RULES` is the order labels are reported in.

This module is pure calculation — no database I/O, no Discord I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from c2s_userdata.constants import (
    METABIT_TIERS,
    PALEO_LEGEND_PRESTIGE,
    PALEO_PRESTIGE_OFFSET,
    PALEO_PRESTIGE_STEP,
    PALEO_PROGRESSIVE_PRESTIGE,
    PALEONTOLOGIST_MIN_RANK,
    ROLE_LABELS,
    SIMULATION_SPEEDSTER_MAX_SECONDS,
    SONIC_SPEEDSTER_MAX_SECONDS,
    RoleKey,
)

if TYPE_CHECKING:
    from c2s_userdata.database.models import PlayerRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Progress snapshot — the engine's only view of a player
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Role-relevant progress values.

    ``prestige_rank`` is deliberately absent: it never affects roles.
    ``singularity_speedrun_time`` is ``None`` when never attempted.
    """

    beta_tester: bool = False
    metabits: float = 0
    dino_rank: int = 0
    singularity_speedrun_time: float | None = None
    all_sharks_obtained: bool = False
    all_hidden_achievements_obtained: bool = False

    @classmethod
    def from_record(cls, record: PlayerRecord) -> ProgressSnapshot:
        return cls(
            beta_tester=bool(record.beta_tester),
            metabits=record.metabits or 0,
            dino_rank=record.dino_rank or 0,
            singularity_speedrun_time=record.singularity_speedrun_time,
            all_sharks_obtained=bool(record.all_sharks_obtained),
            all_hidden_achievements_obtained=bool(record.all_hidden_achievements_obtained),
        )


@dataclass
class RoleDecision:
    """Engine output.

    ``roles_to_apply`` is the complete role list the member should end up
    with.  ``newly_gained`` holds display labels, in evaluation order.
    """

    roles_to_apply: set[int] = field(default_factory=set)
    newly_gained: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Tier rules — pure functions snapshot → roles
# ---------------------------------------------------------------------------
def _metabit_tier(snapshot: ProgressSnapshot) -> list[RoleKey]:
    """Highest qualifying reality tier, or nothing below 1e9."""
    for threshold, role in METABIT_TIERS:
        if snapshot.metabits >= threshold:
            return [role]
    return []


def dino_prestige(dino_rank: int) -> int:
    """``floor((dino_rank - 50) / 50)``; negative below rank 50."""
    return (dino_rank - PALEO_PRESTIGE_OFFSET) // PALEO_PRESTIGE_STEP


def _paleo_tier(snapshot: ProgressSnapshot) -> list[RoleKey]:
    """Prestige checks win over the raw-rank check."""
    prestige = dino_prestige(snapshot.dino_rank)
    if prestige == PALEO_LEGEND_PRESTIGE:
        return [RoleKey.PALEONTOLOGIST_LEGEND]
    if prestige == PALEO_PROGRESSIVE_PRESTIGE:
        return [RoleKey.PROGRESSIVE_PALEONTOLOGIST]
    if snapshot.dino_rank >= PALEONTOLOGIST_MIN_RANK:
        return [RoleKey.PALEONTOLOGIST]
    return []


def _simulation_tier(snapshot: ProgressSnapshot) -> list[RoleKey]:
    """Hidden achievements grant the whole set and skip the speed/shark checks."""
    if snapshot.all_hidden_achievements_obtained:
        return [
            RoleKey.FINDER_OF_SEMBLANCES_SECRETS,
            RoleKey.SONIC_SPEEDSTER_OF_SIMULATIONS,
            RoleKey.SHARK_COLLECTOR,
        ]

    roles: list[RoleKey] = []
    speedrun = snapshot.singularity_speedrun_time
    if speedrun is not None:
        if speedrun <= SONIC_SPEEDSTER_MAX_SECONDS:
            roles.append(RoleKey.SONIC_SPEEDSTER_OF_SIMULATIONS)
        elif speedrun <= SIMULATION_SPEEDSTER_MAX_SECONDS:
            roles.append(RoleKey.SIMULATION_SPEEDSTER)

    if snapshot.all_sharks_obtained:
        roles.append(RoleKey.SHARK_COLLECTOR)
    return roles


def _beta_flag(snapshot: ProgressSnapshot) -> list[RoleKey]:
    return [RoleKey.BETA_TESTER] if snapshot.beta_tester else []


# ---------------------------------------------------------------------------
# Rule registry — evaluation order is label order
# ---------------------------------------------------------------------------
TIER_RULES: tuple[Callable[[ProgressSnapshot], list[RoleKey]], ...] = (
    _metabit_tier,
    _paleo_tier,
    _simulation_tier,
    _beta_flag,
)


def qualifying_roles(snapshot: ProgressSnapshot) -> list[RoleKey]:
    """Every role *snapshot* qualifies for, in evaluation order, without repeats."""
    selected: list[RoleKey] = []
    for rule in TIER_RULES:
        for role in rule(snapshot):
            if role not in selected:
                selected.append(role)
    return selected


# ---------------------------------------------------------------------------
# Main decision function
# ---------------------------------------------------------------------------
def decide_roles(
    snapshot: ProgressSnapshot,
    currently_held: Collection[int],
    role_ids: Mapping[RoleKey, int],
    preserved_role_ids: Collection[int] = (),
) -> RoleDecision:
    """Compute the member's target role list and the labels newly gained.

    Parameters
    ----------
    snapshot : Progress values after the update.
    currently_held : Role IDs the member holds right now (live from Discord).
    role_ids : Managed role key → Discord role ID.
    preserved_role_ids : Roles copied through if already held, never granted.

    Returns
    -------
    RoleDecision with the full role set to apply and the gained labels.
    """
    held = set(currently_held)
    decision = RoleDecision(
        roles_to_apply={role_id for role_id in preserved_role_ids if role_id in held},
    )

    for role in qualifying_roles(snapshot):
        role_id = role_ids[role]
        decision.roles_to_apply.add(role_id)
        if role_id not in held:
            decision.newly_gained.append(ROLE_LABELS[role])

    if decision.newly_gained:
        logger.debug("Roles newly gained: %s", ", ".join(decision.newly_gained))
    return decision
