"""Database models for consumers, credit limits and transactions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: date | datetime | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.isoformat() + "Z"
        return value.isoformat()
    return f"{value.isoformat()}T00:00:00Z"


class Base(DeclarativeBase):
    """Declarative base for all models."""


class Konsumen(Base):
    """A consumer registered for financing."""

    __tablename__ = "konsumens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nik: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tempat_lahir: Mapped[str] = mapped_column(String(255), nullable=False)
    tanggal_lahir: Mapped[date] = mapped_column(Date, nullable=False)
    gaji: Mapped[int] = mapped_column(BigInteger, nullable=False)
    foto_ktp: Mapped[str] = mapped_column(String(255), nullable=False)
    foto_selfie: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used in API responses."""
        return {
            "ID": self.id,
            "nik": self.nik,
            "fullname": self.fullname,
            "legal_name": self.legal_name,
            "tempat_lahir": self.tempat_lahir,
            "tanggal_lahir": _iso(self.tanggal_lahir),
            "gaji": self.gaji,
            "foto_ktp": self.foto_ktp,
            "foto_selfie": self.foto_selfie,
            "CreatedAt": _iso(self.created_at),
            "UpdatedAt": _iso(self.updated_at),
        }


def _loaded_konsumen(instance: Base) -> Optional[Konsumen]:
    # Only include the related consumer when it has already been loaded.
    return instance.__dict__.get("konsumen")


class Limit(Base):
    """A credit limit of a consumer for one tenor."""

    __tablename__ = "limits"
    __table_args__ = (CheckConstraint("tenor IN (1,2,3,4)", name="chk_limits_tenor"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    konsumen_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("konsumens.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenor: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    limit_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    konsumen: Mapped[Optional[Konsumen]] = relationship(Konsumen)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used in API responses."""
        data: dict[str, Any] = {
            "id": self.id,
            "konsumen_id": self.konsumen_id,
            "tenor": self.tenor,
            "limit_amount": self.limit_amount,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        konsumen = _loaded_konsumen(self)
        if konsumen is not None:
            data["konsumen"] = konsumen.to_dict()
        return data


class RecordTransaction(Base):
    """A recorded financing transaction."""

    __tablename__ = "record_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    konsumen_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("konsumens.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    nomor_kontrak: Mapped[str] = mapped_column(String(50), nullable=False)
    otr: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_fee: Mapped[int] = mapped_column(BigInteger, nullable=False)
    jumlah_cicilan: Mapped[int] = mapped_column(BigInteger, nullable=False)
    jumlah_bunga: Mapped[int] = mapped_column(BigInteger, nullable=False)
    nama_aset: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    konsumen: Mapped[Optional[Konsumen]] = relationship(Konsumen)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used in API responses."""
        data: dict[str, Any] = {
            "id": self.id,
            "konsumen_id": self.konsumen_id,
            "nomor_kontrak": self.nomor_kontrak,
            "otr": self.otr,
            "admin_fee": self.admin_fee,
            "jumlah_cicilan": self.jumlah_cicilan,
            "jumlah_bunga": self.jumlah_bunga,
            "nama_aset": self.nama_aset,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        konsumen = _loaded_konsumen(self)
        if konsumen is not None:
            data["konsumen"] = konsumen.to_dict()
        return data