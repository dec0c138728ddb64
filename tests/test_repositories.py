from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from multifinance.models import Base, Konsumen, Limit, RecordTransaction
from multifinance.repositories import (
    KonsumenRepository,
    LimitRepository,
    PageParams,
    RecordNotFound,
    RecordTransactionRepository,
)


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


def _konsumen(n):
    nik = f"TESTNIK-{n:08d}"
    return Konsumen(
        nik=nik,
        fullname="Budi",
        legal_name="Budi",
        tempat_lahir="Jakarta",
        tanggal_lahir=date(2000, 1, 1),
        gaji=10000000,
        foto_ktp=f"storage/uploads/ktp_{nik}.jpg",
        foto_selfie=f"storage/uploads/selfie_{nik}.jpg",
    )


def _transaction(konsumen_id, kontrak):
    return RecordTransaction(
        konsumen_id=konsumen_id,
        nomor_kontrak=kontrak,
        otr="otr123",
        admin_fee=10000,
        jumlah_cicilan=1050000,
        jumlah_bunga=50000,
        nama_aset="Mobil",
    )


def test_page_params_defaults_from_empty_query():
    assert PageParams.from_query({}) == PageParams(
        page=1, page_size=10, sort="id", direction="desc"
    )


@pytest.mark.parametrize(
    "query, field, expected",
    [
        ({"page": "0"}, "page", 1),
        ({"page": "abc"}, "page", 1),
        ({"page": "-2"}, "page", 1),
        ({"page": "3"}, "page", 3),
        ({"page_size": "500"}, "page_size", 100),
        ({"page_size": "-3"}, "page_size", 10),
        ({"page_size": "25"}, "page_size", 25),
        ({"direction": "up"}, "direction", "desc"),
        ({"direction": "asc"}, "direction", "asc"),
        ({"sort": "fullname"}, "sort", "fullname"),
    ],
)
def test_page_params_from_query(query, field, expected):
    assert getattr(PageParams.from_query(query), field) == expected


def test_page_params_rejects_unsafe_sort():
    with pytest.raises(ValueError):
        PageParams.from_query({"sort": "id; DROP TABLE konsumens"})


def test_konsumen_find_all_paginates(session):
    repo = KonsumenRepository(session)
    for n in range(15):
        repo.save(_konsumen(n))

    first = repo.find_all()
    assert len(first) == 10
    ids = [k.id for k in first]
    assert ids == sorted(ids, reverse=True)

    second = repo.find_all(PageParams(page=2))
    assert len(second) == 5
    all_ids = {k.id for k in first} | {k.id for k in second}
    assert len(all_ids) == 15

    ascending = [k.id for k in repo.find_all(PageParams(direction="asc", page_size=100))]
    assert ascending == sorted(ascending)
    assert len(ascending) == 15


def test_konsumen_save_and_find(session):
    repo = KonsumenRepository(session)
    stored = repo.save(_konsumen(1))
    found = repo.find_by_id(stored.id)
    assert found.nik == "TESTNIK-00000001"
    assert repo.find_by_nik("TESTNIK-00000001").id == stored.id


def test_konsumen_find_by_nik_missing_returns_none(session):
    assert KonsumenRepository(session).find_by_nik("TESTNIK-99999999") is None


def test_konsumen_find_by_id_missing(session):
    with pytest.raises(RecordNotFound):
        KonsumenRepository(session).find_by_id(42)


def test_konsumen_update(session):
    repo = KonsumenRepository(session)
    stored = repo.save(_konsumen(1))
    stored.fullname = "Budi Santoso"
    updated = repo.update(stored)
    assert updated.fullname == "Budi Santoso"
    assert repo.find_by_id(stored.id).fullname == "Budi Santoso"


def test_konsumen_delete(session):
    repo = KonsumenRepository(session)
    stored = repo.save(_konsumen(1))
    konsumen_id = stored.id
    repo.delete(stored)
    with pytest.raises(RecordNotFound):
        repo.find_by_id(konsumen_id)


def test_delete_without_primary_key_fails(session):
    with pytest.raises(ValueError):
        KonsumenRepository(session).delete(_konsumen(1))


def test_limit_crud(session):
    konsumen = KonsumenRepository(session).save(_konsumen(1))
    repo = LimitRepository(session)
    stored = repo.save(Limit(konsumen_id=konsumen.id, tenor=1, limit_amount=1000000))
    assert [item.id for item in repo.find_all()] == [stored.id]

    found = repo.find_by_konsumen_tenor(konsumen.id, 1)
    assert found.limit_amount == 1000000

    found.limit_amount = 2000000
    repo.update(found)
    assert repo.find_by_id(stored.id).limit_amount == 2000000

    repo.delete(found)
    assert repo.find_all() == []


def test_limit_find_by_konsumen_tenor_missing(session):
    konsumen = KonsumenRepository(session).save(_konsumen(1))
    repo = LimitRepository(session)
    repo.save(Limit(konsumen_id=konsumen.id, tenor=1, limit_amount=1000000))
    with pytest.raises(RecordNotFound):
        repo.find_by_konsumen_tenor(konsumen.id, 2)
    with pytest.raises(RecordNotFound):
        repo.find_by_id(999)


def test_record_transaction_repository(session):
    konsumens = KonsumenRepository(session)
    first = konsumens.save(_konsumen(1))
    second = konsumens.save(_konsumen(2))
    repo = RecordTransactionRepository(session)
    repo.save(_transaction(first.id, "kontrak1"))
    repo.save(_transaction(first.id, "kontrak2"))
    stored = repo.save(_transaction(second.id, "kontrak3"))

    assert len(repo.find_all()) == 3
    own = repo.find_by_konsumen_id(first.id)
    assert [t.nomor_kontrak for t in own] == ["kontrak1", "kontrak2"]
    assert repo.find_by_konsumen_id(12345) == []
    assert repo.find_by_id(stored.id).nomor_kontrak == "kontrak3"
    with pytest.raises(RecordNotFound):
        repo.find_by_id(999)