"""Business rules for consumers, credit limits and transactions."""

from __future__ import annotations

import logging
import re
import shutil
from datetime import date
from pathlib import Path
from typing import Any, Optional

from multifinance.dto import (
    CreateKonsumenRequest,
    CreateLimitRequest,
    CreateRecordTransactionRequest,
    UpdateKonsumenRequest,
    UpdateLimitRequest,
)
from multifinance.logger import get_logger
from multifinance.models import Konsumen, Limit, RecordTransaction
from multifinance.repositories import (
    KonsumenRepository,
    LimitRepository,
    PageParams,
    RecordTransactionRepository,
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")
_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

MAX_INSTALMENTS = 4


class ServiceError(Exception):
    """Raised when a request breaks a business rule or cannot be parsed."""


class _NumberError(ValueError):
    def __init__(self, text: str, reason: str, clamped: int = 0) -> None:
        super().__init__(f'parsing "{text}": {reason}')
        self.text = text
        self.reason = reason
        self.clamped = clamped


def _parse_int64(text: str) -> int:
    """Parse a signed base-10 64-bit integer, rejecting anything else."""
    if not _INTEGER.fullmatch(text):
        raise _NumberError(text, "invalid syntax")
    value = int(text)
    if value > _INT64_MAX:
        raise _NumberError(text, "value out of range", _INT64_MAX)
    if value < _INT64_MIN:
        raise _NumberError(text, "value out of range", _INT64_MIN)
    return value


def _parse_int64_lenient(text: str) -> int:
    """Parse an integer; invalid text gives 0 and overflow saturates."""
    try:
        return _parse_int64(text)
    except _NumberError as exc:
        return exc.clamped


def _wrap_int64(value: int) -> int:
    return (value - _INT64_MIN) % 2**64 + _INT64_MIN


def _parse_date(text: str) -> date:
    if not _ISO_DATE.fullmatch(text):
        raise ValueError(f"invalid date: {text!r}")
    return date.fromisoformat(text)


def _save_upload(upload: Any, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    if hasattr(upload, "save"):
        upload.save(str(destination))
    elif isinstance(upload, (bytes, bytearray)):
        destination.write_bytes(bytes(upload))
    elif hasattr(upload, "read"):
        with open(destination, "wb") as target:
            shutil.copyfileobj(upload, target)
    else:
        raise TypeError(f"unsupported upload type: {type(upload).__name__}")


class _LoggingService:
    _log_name = "app"

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger

    @property
    def log(self) -> logging.Logger:
        if self._logger is None:
            self._logger = get_logger(self._log_name)
        return self._logger

    def _fail(self, message: str) -> ServiceError:
        self.log.error(message)
        return ServiceError(message)


class KonsumenService(_LoggingService):
    """Registration and maintenance of consumers."""

    _log_name = "KonsumenService"

    def __init__(
        self,
        repository: KonsumenRepository,
        upload_dir: str | Path = "storage/uploads",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger)
        self.repository = repository
        self.upload_dir = Path(upload_dir)

    def find_all(self, page: Optional[PageParams] = None) -> list[Konsumen]:
        """Return one page of consumers."""
        return self.repository.find_all(page)

    def find_by_id(self, id_str: str) -> Konsumen:
        """Return the consumer whose id is given as text."""
        try:
            konsumen_id = _parse_int64(id_str)
        except _NumberError:
            raise ServiceError("invalid id") from None
        return self.repository.find_by_id(konsumen_id)

    def _store_photo(self, upload: Any, prefix: str, nik: str) -> str:
        if upload is None:
            raise self._fail("validation error: foto_ktp wajib diunggah")
        destination = self.upload_dir / f"{prefix}_{nik}.jpg"
        try:
            _save_upload(upload, destination)
        except (OSError, TypeError):
            raise self._fail("validation error: gagal menyimpan foto KTP") from None
        return str(destination)

    def create(self, req: CreateKonsumenRequest) -> Konsumen:
        """Store the uploaded photos and register a new consumer."""
        foto_ktp = self._store_photo(req.foto_ktp, "ktp", req.nik)
        foto_selfie = self._store_photo(req.foto_selfie, "selfie", req.nik)

        try:
            tanggal_lahir = _parse_date(req.tanggal_lahir)
        except ValueError:
            raise self._fail("validation error: format tanggal lahir salah") from None

        try:
            gaji = _parse_int64(req.gaji)
        except _NumberError:
            raise self._fail("validation error: gaji tidak valid") from None

        try:
            existing = self.repository.find_by_nik(req.nik)
        except Exception:  # lookup failures are treated as "not registered"
            existing = None
        if existing is not None and existing.nik:
            raise self._fail("validation error: NIK sudah terdaftar")

        konsumen = Konsumen(
            nik=req.nik,
            fullname=req.fullname,
            legal_name=req.legal_name,
            tempat_lahir=req.tempat_lahir,
            tanggal_lahir=tanggal_lahir,
            gaji=gaji,
            foto_ktp=foto_ktp,
            foto_selfie=foto_selfie,
        )
        try:
            return self.repository.save(konsumen)
        except Exception as exc:
            self.log.error(str(exc))
            raise ServiceError("validation error: format tanggal lahir salah") from exc

    def update(self, id_str: str, req: UpdateKonsumenRequest) -> Konsumen:
        """Apply the fields present in the request to an existing consumer."""
        try:
            konsumen_id = _parse_int64(id_str)
        except _NumberError:
            raise ServiceError("invalid product ID") from None

        konsumen = self.repository.find_by_id(konsumen_id)

        tanggal_lahir = None
        if req.tanggal_lahir is not None:
            try:
                tanggal_lahir = _parse_date(req.tanggal_lahir)
            except ValueError:
                raise ServiceError("format tanggal lahir salah") from None
        gaji = None
        if req.gaji is not None:
            try:
                gaji = _parse_int64(req.gaji)
            except _NumberError:
                raise ServiceError("gaji tidak valid") from None

        if req.fullname is not None:
            konsumen.fullname = req.fullname
        if req.legal_name is not None:
            konsumen.legal_name = req.legal_name
        if req.tempat_lahir is not None:
            konsumen.tempat_lahir = req.tempat_lahir
        if tanggal_lahir is not None:
            konsumen.tanggal_lahir = tanggal_lahir
        if gaji is not None:
            konsumen.gaji = gaji

        try:
            return self.repository.update(konsumen)
        except Exception as exc:
            self.log.error(str(exc))
            raise

    def delete(self, id_str: str) -> None:
        """Delete the consumer whose id is given as text."""
        try:
            konsumen = self.find_by_id(id_str)
        except Exception as exc:
            self.log.error(str(exc))
            raise
        self.repository.delete(konsumen)


class LimitService(_LoggingService):
    """Credit limits per consumer and tenor."""

    _log_name = "LimitService"

    def __init__(self, repository: LimitRepository, logger: Optional[logging.Logger] = None) -> None:
        super().__init__(logger)
        self.repository = repository

    def find_all(self) -> list[Limit]:
        """Return every limit."""
        return self.repository.find_all()

    def find_by_id(self, id_str: str) -> Limit:
        """Return the limit whose id is given as text."""
        try:
            limit_id = _parse_int64(id_str)
        except _NumberError:
            raise ServiceError("invalid id") from None
        return self.repository.find_by_id(limit_id)

    def create(self, req: CreateLimitRequest) -> Limit:
        """Build a new, unsaved limit unless one already exists for the tenor."""
        try:
            amount = _parse_int64(req.limit_amount)
        except _NumberError:
            raise ServiceError("invalid limit amount") from None
        try:
            existing = self.repository.find_by_konsumen_tenor(req.konsumen_id, req.tenor)
        except Exception:  # no limit yet for this tenor
            existing = None
        if existing is not None and existing.limit_amount != 0:
            raise ServiceError("limit already exist")
        return Limit(konsumen_id=req.konsumen_id, tenor=req.tenor, limit_amount=amount)

    def update(self, id_str: str, req: UpdateLimitRequest) -> Limit:
        """Return the existing limit with its amount changed, not yet persisted."""
        try:
            limit_id = _parse_int64(id_str)
        except _NumberError:
            raise ServiceError("invalid product ID") from None
        try:
            amount = _parse_int64(req.limit_amount)
        except _NumberError:
            raise ServiceError("invalid limit amount") from None
        limit = self.repository.find_by_id(limit_id)
        limit.limit_amount = amount
        return limit


class RecordTransactionService(_LoggingService):
    """Recording of financing transactions against credit limits."""

    _log_name = "TransactionService"

    def __init__(
        self,
        transactions: RecordTransactionRepository,
        limits: LimitRepository,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger)
        self.transactions = transactions
        self.limits = limits

    def find_all(self) -> list[RecordTransaction]:
        """Return every transaction."""
        return self.transactions.find_all()

    def find_by_id(self, id_str: str) -> RecordTransaction:
        """Return the transaction whose id is given as text."""
        try:
            transaction_id = _parse_int64(id_str)
        except _NumberError as exc:
            raise ServiceError(f"strconv.Atoi: {exc}") from None
        return self.transactions.find_by_id(transaction_id)

    def create(self, req: CreateRecordTransactionRequest) -> RecordTransaction:
        """Check the instalment against the consumer's limit and build an unsaved record."""
        self.log.info("Service Create Transaction Start")

        admin_fee = _parse_int64_lenient(req.admin_fee)
        jumlah_bunga = _parse_int64_lenient(req.jumlah_bunga)
        cicilan = _parse_int64_lenient(req.jumlah_cicilan)
        jumlah_cicilan = _wrap_int64(cicilan + admin_fee + jumlah_bunga)

        try:
            existing = self.transactions.find_by_konsumen_id(req.konsumen_id)
        except Exception:  # treated as no previous transactions
            existing = []
        existing_count = len(existing) % 256 if existing else 1

        try:
            limit = self.limits.find_by_konsumen_tenor(req.konsumen_id, existing_count)
        except Exception:
            raise self._fail("cicilan tidak ada") from None

        if jumlah_cicilan > limit.limit_amount:
            raise self._fail("jumlah cicilan melebihi batas limit yang ditentukan")
        if jumlah_cicilan < limit.limit_amount:
            raise self._fail("jumlah cicilan kurang dari batas limit yang ditentukan")
        if existing_count >= MAX_INSTALMENTS:
            raise self._fail(
                f"jumlah cicilan sudah mencapai batas maksimal ({MAX_INSTALMENTS})"
            )

        record = RecordTransaction(
            konsumen_id=req.konsumen_id,
            nomor_kontrak=req.nomor_kontrak,
            otr=req.otr,
            admin_fee=admin_fee,
            jumlah_cicilan=jumlah_cicilan,
            jumlah_bunga=jumlah_bunga,
            nama_aset=req.nama_aset,
        )
        self.log.info("Service Create Transaction End")
        return record