"""
c2s_userdata.services.userdata_service — Record Store Operations
=================================================================

Synchronous store functions, called from handlers through ``run_db``.
Every mutation filters on the derived ``token`` column, never on the
Discord ID alone.

Any SQLAlchemy failure is re-raised as :class:`StoreError` carrying the
driver's message unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from c2s_userdata.database.models import PlayerRecord
from c2s_userdata.errors import StoreError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

# Columns a progress update may touch.  Identity and token are never among them.
MUTABLE_COLUMNS: frozenset[str] = frozenset({
    "beta_tester",
    "metabits",
    "dino_rank",
    "prestige_rank",
    "singularity_speedrun_time",
    "all_sharks_obtained",
    "all_hidden_achievements_obtained",
})


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@contextmanager
def _store_session(engine: Engine) -> Iterator[Session]:
    """Yield a session that commits on success and maps DB errors to StoreError.

    Objects stay loaded after commit so they can be returned detached.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise StoreError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreError(str(exc)) from exc
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_by_token(engine: Engine, token: str) -> PlayerRecord | None:
    """Fetch the record whose stored token equals *token*."""
    with _store_session(engine) as session:
        return session.scalar(select(PlayerRecord).where(PlayerRecord.token == token))


def list_records(engine: Engine) -> list[PlayerRecord]:
    """Every stored record, oldest first."""
    with _store_session(engine) as session:
        return list(session.scalars(select(PlayerRecord).order_by(PlayerRecord.id)).all())


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def update_by_token(
    engine: Engine,
    token: str,
    changes: dict[str, Any],
    *,
    timestamp: int | None = None,
) -> PlayerRecord | None:
    """Atomically merge *changes* into the record matching *token*.

    The filter, the partial ``SET`` and the read-back are one
    ``UPDATE … RETURNING`` statement.  Columns absent from *changes* are
    left as they are.  ``edited_timestamp`` moves to *timestamp* (default:
    now) but never backwards.

    Returns the post-update record, or ``None`` if no record matched.
    """
    unknown = set(changes) - MUTABLE_COLUMNS
    if unknown:
        raise ValueError(f"Not updatable: {', '.join(sorted(unknown))}")

    stamp = timestamp if timestamp is not None else now_ms()
    stmt = (
        update(PlayerRecord)
        .where(PlayerRecord.token == token)
        .values(
            **changes,
            edited_timestamp=case(
                (PlayerRecord.edited_timestamp > stamp, PlayerRecord.edited_timestamp),
                else_=stamp,
            ),
        )
        .returning(PlayerRecord)
        .execution_options(synchronize_session=False)
    )

    with _store_session(engine) as session:
        record = session.scalars(stmt).one_or_none()

    if record is None:
        logger.info("Update matched no record (token %s…)", token[:8])
    return record


def create_record(engine: Engine, *, discord_id: str, token: str) -> PlayerRecord:
    """Insert a fresh record with default progress.

    Raises :class:`StoreError` if *token* is already linked.
    """
    record = PlayerRecord(discord_id=discord_id, token=token)
    with _store_session(engine) as session:
        session.add(record)
        session.flush()
    logger.info("Linked user data for Discord ID %s", discord_id)
    return record


def delete_by_token(engine: Engine, token: str) -> PlayerRecord | None:
    """Delete the record matching *token* and return it, or ``None``."""
    stmt = (
        delete(PlayerRecord)
        .where(PlayerRecord.token == token)
        .returning(PlayerRecord)
        .execution_options(synchronize_session=False)
    )
    with _store_session(engine) as session:
        record = session.scalars(stmt).one_or_none()

    if record is not None:
        logger.info("Deleted user data for Discord ID %s", record.discord_id)
    return record
