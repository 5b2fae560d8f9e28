"""
tests/test_userdata_service.py — Record Store Operations
=========================================================

Runs against in-memory SQLite; ``UPDATE … RETURNING`` needs SQLite 3.35+.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select

from c2s_userdata.database.models import PlayerRecord
from c2s_userdata.errors import StoreError
from c2s_userdata.services import userdata_service

from conftest import DISCORD_ID

TOKEN = "a" * 40


@pytest.fixture
def record(db_engine):
    return userdata_service.create_record(db_engine, discord_id=DISCORD_ID, token=TOKEN)


# ---------------------------------------------------------------------------
# create / read
# ---------------------------------------------------------------------------
class TestCreateAndRead:
    def test_create_uses_default_progress(self, record):
        assert record.id is not None
        assert record.discord_id == DISCORD_ID
        assert record.metabits == 0
        assert record.dino_rank == 0
        assert record.beta_tester is False
        assert record.singularity_speedrun_time is None
        assert record.edited_timestamp is None

    def test_duplicate_token_is_a_store_error(self, db_engine, record):
        with pytest.raises(StoreError, match="UNIQUE"):
            userdata_service.create_record(db_engine, discord_id="999", token=TOKEN)

    def test_get_by_token(self, db_engine, record):
        found = userdata_service.get_by_token(db_engine, TOKEN)
        assert found is not None
        assert found.id == record.id

    def test_get_by_unknown_token(self, db_engine, record):
        assert userdata_service.get_by_token(db_engine, "b" * 40) is None

    def test_list_records_oldest_first(self, db_engine, record):
        userdata_service.create_record(db_engine, discord_id="222", token="c" * 40)
        records = userdata_service.list_records(db_engine)
        assert [r.discord_id for r in records] == [DISCORD_ID, "222"]

    def test_to_dict_uses_wire_names(self, record):
        data = record.to_dict()
        assert data["discordId"] == DISCORD_ID
        assert data["betaTester"] is False
        assert "beta_tester" not in data
        assert data["token"] == TOKEN


# ---------------------------------------------------------------------------
# update_by_token
# ---------------------------------------------------------------------------
class TestUpdateByToken:
    def test_merges_only_present_fields(self, db_engine, record):
        userdata_service.update_by_token(db_engine, TOKEN, {"dino_rank": 40, "metabits": 5.0})
        updated = userdata_service.update_by_token(db_engine, TOKEN, {"beta_tester": True})

        assert updated.beta_tester is True
        assert updated.dino_rank == 40
        assert updated.metabits == 5.0

    def test_returns_post_update_values(self, db_engine, record):
        updated = userdata_service.update_by_token(
            db_engine, TOKEN, {"singularity_speedrun_time": 99.5}, timestamp=1_700_000_000_000,
        )
        assert updated.singularity_speedrun_time == 99.5
        assert updated.edited_timestamp == 1_700_000_000_000

    def test_persists_the_change(self, db_engine, db_session, record):
        userdata_service.update_by_token(db_engine, TOKEN, {"prestige_rank": 3})
        row = db_session.scalar(select(PlayerRecord).where(PlayerRecord.token == TOKEN))
        assert row.prestige_rank == 3

    def test_no_match_returns_none(self, db_engine, record):
        assert userdata_service.update_by_token(db_engine, "f" * 40, {"metabits": 1.0}) is None
        assert userdata_service.get_by_token(db_engine, TOKEN).metabits == 0

    def test_timestamp_never_moves_backwards(self, db_engine, record):
        userdata_service.update_by_token(db_engine, TOKEN, {"metabits": 1.0}, timestamp=2000)
        updated = userdata_service.update_by_token(db_engine, TOKEN, {"metabits": 2.0}, timestamp=1000)
        assert updated.metabits == 2.0
        assert updated.edited_timestamp == 2000

    def test_timestamp_defaults_to_now(self, db_engine, record):
        before = userdata_service.now_ms()
        updated = userdata_service.update_by_token(db_engine, TOKEN, {"metabits": 1.0})
        assert updated.edited_timestamp >= before

    @pytest.mark.parametrize("column", ["token", "discord_id", "id", "edited_timestamp"])
    def test_rejects_non_progress_columns(self, db_engine, record, column):
        with pytest.raises(ValueError, match=column):
            userdata_service.update_by_token(db_engine, TOKEN, {column: "x"})

    def test_only_the_matching_record_changes(self, db_engine, record):
        userdata_service.create_record(db_engine, discord_id="222", token="c" * 40)
        userdata_service.update_by_token(db_engine, TOKEN, {"dino_rank": 77})
        assert userdata_service.get_by_token(db_engine, "c" * 40).dino_rank == 0


# ---------------------------------------------------------------------------
# delete_by_token
# ---------------------------------------------------------------------------
class TestDeleteByToken:
    def test_deletes_and_returns_record(self, db_engine, record):
        deleted = userdata_service.delete_by_token(db_engine, TOKEN)
        assert deleted.discord_id == DISCORD_ID
        assert userdata_service.get_by_token(db_engine, TOKEN) is None

    def test_unknown_token(self, db_engine, record):
        assert userdata_service.delete_by_token(db_engine, "f" * 40) is None
        assert len(userdata_service.list_records(db_engine)) == 1
