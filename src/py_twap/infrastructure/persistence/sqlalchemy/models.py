"""
SQLAlchemy ORM schema declarations only (tables, columns, indexes, column types).
No business logic, helpers, or factory functions should live here.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Index, String
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class BigIntText(TypeDecorator[int]):
    """Arbitrary-precision integer persisted as base-10 text.

    Reserves are uint112 and prices carry 18 decimals, so products overflow
    every native integer column type; SQLite NUMERIC would silently fall back
    to REAL.
    """

    impl = String(100)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"BigIntText expects int, got {type(value).__name__}")
        return str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        if value is None:
            return None
        return int(value)


class Base(DeclarativeBase):
    pass


class MetadataORM(Base):
    __tablename__ = "twap_metadata"
    key: Mapped[str] = mapped_column(String(32), primary_key=True)
    next_sample_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_count: Mapped[int] = mapped_column(BigInteger, nullable=False)


class PriceSampleORM(Base):
    __tablename__ = "price_samples"
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    raw_reserve_a: Mapped[int] = mapped_column(BigIntText, nullable=False)
    price_a_to_b: Mapped[int] = mapped_column(BigIntText, nullable=False)
    price_b_to_c: Mapped[int] = mapped_column(BigIntText, nullable=False)
    price_composite: Mapped[int] = mapped_column(BigIntText, nullable=False)
    source_address: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_price_samples_timestamp", "timestamp"),
        Index("ix_price_samples_block_height", "block_height"),
    )


class AggregateORM(Base):
    __tablename__ = "twap_aggregates"
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    numerator: Mapped[int] = mapped_column(BigIntText, nullable=False)
    denominator: Mapped[int] = mapped_column(BigIntText, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    source_address: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_twap_aggregates_timestamp", "timestamp"),
    )


class LastPointerORM(Base):
    __tablename__ = "twap_last_pointer"
    key: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_sample_id: Mapped[str] = mapped_column(String(32), nullable=False)
    last_aggregate_id: Mapped[str] = mapped_column(String(32), nullable=False)


class TransactionCountSnapshotORM(Base):
    __tablename__ = "transaction_count_snapshots"
    timestamp: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    block_height: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
