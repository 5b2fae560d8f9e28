"""
tests/test_progress_service.py — Progress Update Transaction
=============================================================

Drives ``apply_progress_update`` against SQLite and the in-memory
FakeMembership; no HTTP layer involved.
"""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from c2s_userdata.constants import RoleKey
from c2s_userdata.engine.tokens import derive_token
from c2s_userdata.errors import RoleReconciliationError
from c2s_userdata.services import userdata_service
from c2s_userdata.services.progress_service import (
    apply_progress_update,
    congratulation_message,
    notify_gained_roles,
)

from conftest import DISCORD_ID, ROLE_IDS, STAFF_ROLE_ID

SECRET = "server-secret"
PLAYER_ID = "player-1"
PLAYER_TOKEN = "secret-token"


def run_async(coro):
    """Run an async coroutine without pytest-asyncio."""
    return asyncio.run(coro)


@pytest.fixture
def linked(db_engine):
    token = derive_token(SECRET, PLAYER_ID, PLAYER_TOKEN)
    return userdata_service.create_record(db_engine, discord_id=DISCORD_ID, token=token)


def _update(db_engine, membership, cfg, changes, *, player_token=PLAYER_TOKEN):
    return run_async(
        apply_progress_update(
            db_engine,
            membership,
            cfg,
            server_secret=SECRET,
            player_id=PLAYER_ID,
            player_token=player_token,
            changes=changes,
        )
    )


class TestApplyProgressUpdate:
    def test_grants_new_role(self, db_engine, membership, cfg, linked):
        outcome = _update(db_engine, membership, cfg, {"metabits": 1e9})

        assert outcome.record.metabits == 1e9
        assert outcome.gained_labels == ["Reality Explorer"]
        assert outcome.roles_replaced is True
        assert membership.held[DISCORD_ID] == {ROLE_IDS[RoleKey.REALITY_EXPLORER]}

    def test_wrong_player_token_matches_nothing(self, db_engine, membership, cfg, linked):
        outcome = _update(db_engine, membership, cfg, {"metabits": 1e9}, player_token="guess")

        assert outcome.record is None
        assert outcome.gained_labels == []
        assert membership.replaced == []
        assert userdata_service.get_by_token(db_engine, linked.token).metabits == 0

    def test_no_replacement_when_roles_already_match(self, db_engine, membership, cfg, linked):
        membership.held[DISCORD_ID] = {ROLE_IDS[RoleKey.BETA_TESTER]}
        outcome = _update(db_engine, membership, cfg, {"beta_tester": True})

        assert outcome.roles_replaced is False
        assert outcome.gained_labels == []
        assert membership.replaced == []

    def test_engine_sees_merged_record(self, db_engine, membership, cfg, linked):
        """Fields stored by an earlier update still count."""
        _update(db_engine, membership, cfg, {"dino_rank": 30})
        outcome = _update(db_engine, membership, cfg, {"all_sharks_obtained": True})

        assert outcome.gained_labels == ["Shark Collector"]
        assert ROLE_IDS[RoleKey.PALEONTOLOGIST] in membership.held[DISCORD_ID]

    def test_persistent_roles_are_kept_and_others_replaced(self, db_engine, membership, cfg, linked):
        membership.held[DISCORD_ID] = {STAFF_ROLE_ID, 4242}
        _update(db_engine, membership, cfg, {"beta_tester": True})

        assert membership.held[DISCORD_ID] == {STAFF_ROLE_ID, ROLE_IDS[RoleKey.BETA_TESTER]}

    def test_role_failure_keeps_store_write(self, db_engine, membership, cfg, linked):
        membership.fail_replace = True
        with pytest.raises(RoleReconciliationError):
            _update(db_engine, membership, cfg, {"metabits": 1e12})

        assert userdata_service.get_by_token(db_engine, linked.token).metabits == 1e12

    def test_member_lookup_failure(self, db_engine, membership, cfg, linked):
        membership.fail_lookup = True
        with pytest.raises(RoleReconciliationError, match="not in the Discord server"):
            _update(db_engine, membership, cfg, {"metabits": 1.0})


class TestNotifyGainedRoles:
    def test_sends_congratulation(self, membership):
        sent = run_async(notify_gained_roles(membership, DISCORD_ID, ["Beta Tester", "Paleontologist"]))

        assert sent is True
        assert membership.sent == [(DISCORD_ID, congratulation_message(["Beta Tester", "Paleontologist"]))]
        assert "Beta Tester, Paleontologist" in membership.sent[0][1]

    def test_nothing_gained_sends_nothing(self, membership):
        assert run_async(notify_gained_roles(membership, DISCORD_ID, [])) is False
        assert membership.sent == []

    def test_closed_dms_are_logged_not_raised(self, membership, caplog):
        membership.dms_closed = True
        with caplog.at_level(logging.WARNING, logger="c2s_userdata.services.progress_service"):
            sent = run_async(notify_gained_roles(membership, DISCORD_ID, ["Beta Tester"]))

        assert sent is False
        assert "DMs closed" in caplog.text

    def test_transport_failure_is_logged_not_raised(self, membership, caplog):
        membership.send_direct_message = AsyncMock(side_effect=ConnectionResetError("peer reset"))
        with caplog.at_level(logging.ERROR, logger="c2s_userdata.services.progress_service"):
            sent = run_async(notify_gained_roles(membership, DISCORD_ID, ["Beta Tester"]))

        assert sent is False
        assert "Failed to DM" in caplog.text


class TestCongratulationMessage:
    def test_format(self):
        assert congratulation_message(["Reality Explorer"]) == (
            "You have successfully received the following roles: Reality Explorer\n"
            " **congrats on your accomplishment! :tada:**"
        )
