"""Request objects parsed and validated from form and JSON bodies."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class ValidationError(ValueError):
    """Raised when request data fails binding or validation."""


class _Field(NamedTuple):
    key: str
    name: str
    kind: str  # "str", "int" or "uint8"


def _tag_error(struct: str, name: str, tag: str) -> str:
    return f"Key: '{struct}.{name}' Error:Field validation for '{name}' failed on the '{tag}' tag"


def _raise_if_any(errors: list[str]) -> None:
    if errors:
        raise ValidationError("\n".join(errors))


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def _convert(struct: str, spec: _Field, value: Any) -> Any:
    def bad() -> ValidationError:
        return ValidationError(
            f"cannot unmarshal {_json_kind(value)} into field "
            f"{struct}.{spec.key} of type {spec.kind if spec.kind != 'str' else 'string'}"
        )

    if spec.kind == "str":
        if not isinstance(value, str):
            raise bad()
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise bad()
    low, high = (0, 255) if spec.kind == "uint8" else (_INT64_MIN, _INT64_MAX)
    if not low <= value <= high:
        raise bad()
    return value


def _decode(struct: str, data: Any, fields: tuple[_Field, ...]) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"request body for {struct} must be a JSON object")
    values: dict[str, Any] = {}
    for spec in fields:
        raw = data.get(spec.key)
        if raw is None:
            values[spec.key] = "" if spec.kind == "str" else 0
        else:
            values[spec.key] = _convert(struct, spec, raw)
    return values


def _required(struct: str, fields: tuple[_Field, ...], values: Mapping[str, Any]) -> list[str]:
    return [_tag_error(struct, f.name, "required") for f in fields if not values[f.key]]


@dataclass(frozen=True)
class CreateKonsumenRequest:
    """Form data for registering a consumer."""

    nik: str
    fullname: str
    legal_name: str
    tempat_lahir: str
    tanggal_lahir: str
    gaji: str
    foto_ktp: Any = None
    foto_selfie: Any = None

    _FIELDS = (
        _Field("nik", "NIK", "str"),
        _Field("fullname", "Fullname", "str"),
        _Field("legal_name", "LegalName", "str"),
        _Field("tempat_lahir", "TempatLahir", "str"),
        _Field("tanggal_lahir", "TanggalLahir", "str"),
        _Field("gaji", "Gaji", "str"),
    )

    @classmethod
    def from_form(
        cls, form: Mapping[str, str], files: Optional[Mapping[str, Any]] = None
    ) -> "CreateKonsumenRequest":
        """Bind form fields and uploaded files; every text field is required."""
        values = {f.key: form.get(f.key) or "" for f in cls._FIELDS}
        _raise_if_any(_required(cls.__name__, cls._FIELDS, values))
        files = files or {}
        return cls(
            **values,
            foto_ktp=files.get("foto_ktp"),
            foto_selfie=files.get("foto_selfie"),
        )


@dataclass(frozen=True)
class UpdateKonsumenRequest:
    """Form data for a partial consumer update; absent fields stay None."""

    fullname: Optional[str] = None
    legal_name: Optional[str] = None
    tempat_lahir: Optional[str] = None
    tanggal_lahir: Optional[str] = None
    gaji: Optional[str] = None

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "UpdateKonsumenRequest":
        """Bind whichever fields are present in the form."""
        return cls(
            fullname=form.get("fullname"),
            legal_name=form.get("legal_name"),
            tempat_lahir=form.get("tempat_lahir"),
            tanggal_lahir=form.get("tanggal_lahir"),
            gaji=form.get("gaji"),
        )


@dataclass(frozen=True)
class CreateLimitRequest:
    """JSON body for creating a credit limit."""

    konsumen_id: int
    tenor: int
    limit_amount: str

    ALLOWED_TENORS = (1, 2, 3, 4)

    _FIELDS = (
        _Field("konsumen_id", "KonsumenID", "int"),
        _Field("tenor", "Tenor", "uint8"),
        _Field("limit_amount", "LimitAmount", "str"),
    )

    @classmethod
    def from_json(cls, data: Any) -> "CreateLimitRequest":
        """Bind and validate a decoded JSON object."""
        struct = cls.__name__
        values = _decode(struct, data, cls._FIELDS)
        errors = []
        for spec in cls._FIELDS:
            if not values[spec.key]:
                errors.append(_tag_error(struct, spec.name, "required"))
            elif spec.key == "tenor" and values["tenor"] not in cls.ALLOWED_TENORS:
                errors.append(_tag_error(struct, spec.name, "oneof"))
        _raise_if_any(errors)
        return cls(**values)


@dataclass(frozen=True)
class UpdateLimitRequest:
    """JSON body for updating a credit limit."""

    tenor: int = 0
    limit_amount: str = ""

    _FIELDS = (
        _Field("tenor", "Tenor", "uint8"),
        _Field("limit_amount", "LimitAmount", "str"),
    )

    @classmethod
    def from_json(cls, data: Any) -> "UpdateLimitRequest":
        """Bind a decoded JSON object; no field is required."""
        return cls(**_decode(cls.__name__, data, cls._FIELDS))


@dataclass(frozen=True)
class CreateRecordTransactionRequest:
    """JSON body for recording a transaction."""

    konsumen_id: int
    nomor_kontrak: str
    otr: str
    admin_fee: str
    jumlah_cicilan: str
    jumlah_bunga: str
    nama_aset: str

    _FIELDS = (
        _Field("konsumen_id", "KonsumenID", "int"),
        _Field("nomor_kontrak", "NomorKontrak", "str"),
        _Field("otr", "OTR", "str"),
        _Field("admin_fee", "AdminFee", "str"),
        _Field("jumlah_cicilan", "JumlahCicilan", "str"),
        _Field("jumlah_bunga", "JumlahBunga", "str"),
        _Field("nama_aset", "NamaAset", "str"),
    )

    @classmethod
    def from_json(cls, data: Any) -> "CreateRecordTransactionRequest":
        """Bind and validate a decoded JSON object; every field is required."""
        values = _decode(cls.__name__, data, cls._FIELDS)
        _raise_if_any(_required(cls.__name__, cls._FIELDS, values))
        return cls(**values)