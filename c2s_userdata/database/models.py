"""
c2s_userdata.database.models — SQLAlchemy 2.0 Data Models
==========================================================

Tables:
- user_data — one row per linked player, keyed for mutation by ``token``
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all ORM models."""


# ---------------------------------------------------------------------------
# PlayerRecord — one row per linked player
# ---------------------------------------------------------------------------
class PlayerRecord(Base):
    """Stored progress for one player.

    ``token`` is the hex HMAC of (playerId, playerToken) under the shared
    server secret; it is the only column updates are filtered on.
    ``edited_timestamp`` is epoch milliseconds.
    """

    __tablename__ = "user_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discord_id: Mapped[str] = mapped_column(String(32), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    beta_tester: Mapped[bool] = mapped_column(Boolean, default=False)
    metabits: Mapped[float] = mapped_column(Float, default=0)
    dino_rank: Mapped[int] = mapped_column(Integer, default=0)
    prestige_rank: Mapped[int] = mapped_column(Integer, default=0)
    singularity_speedrun_time: Mapped[float | None] = mapped_column(Float, default=None)
    all_sharks_obtained: Mapped[bool] = mapped_column(Boolean, default=False)
    all_hidden_achievements_obtained: Mapped[bool] = mapped_column(Boolean, default=False)
    edited_timestamp: Mapped[int | None] = mapped_column(BigInteger, default=None)

    def to_dict(self) -> dict:
        """Wire representation, using the field names the game client sends."""
        return {
            "discordId": self.discord_id,
            "token": self.token,
            "betaTester": self.beta_tester,
            "metabits": self.metabits,
            "dino_rank": self.dino_rank,
            "prestige_rank": self.prestige_rank,
            "singularity_speedrun_time": self.singularity_speedrun_time,
            "all_sharks_obtained": self.all_sharks_obtained,
            "all_hidden_achievements_obtained": self.all_hidden_achievements_obtained,
            "edited_timestamp": self.edited_timestamp,
        }

    def __repr__(self) -> str:
        return f"<PlayerRecord id={self.id} discord_id={self.discord_id!r}>"
