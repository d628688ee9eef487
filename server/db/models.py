"""SQLAlchemy models backing the key-value store."""

from sqlalchemy import JSON, BigInteger, Float, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class KVEntry(Base):
    """A plain key with a JSON value and optional expiry (epoch ms)."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)


class SortedSetMember(Base):
    """One member of a named sorted set."""

    __tablename__ = "kv_sorted_set_members"

    set_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    member: Mapped[str] = mapped_column(String(512), primary_key=True)
    score: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        Index("ix_kv_sorted_set_members_rank", "set_name", "score", "member"),
    )
