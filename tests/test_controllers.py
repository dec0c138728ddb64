import io
import logging
from datetime import date

import pytest
from flask import Flask
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from multifinance.controllers import KonsumenController, LimitController, RecordTransactionController
from multifinance.dto import (
    CreateKonsumenRequest,
    CreateLimitRequest,
    CreateRecordTransactionRequest,
    UpdateKonsumenRequest,
    UpdateLimitRequest,
)
from multifinance.models import Base, Konsumen, Limit, RecordTransaction
from multifinance.repositories import LimitRepository, PageParams, RecordNotFound
from multifinance.services import LimitService, ServiceError

LOG = logging.getLogger("tests.controllers")


class FakeKonsumenService:
    def __init__(self, error=None, items=(), item=None):
        self.error = error
        self.items = list(items)
        self.item = item
        self.calls = []

    def _run(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error

    def find_all(self, page):
        self._run("find_all", page)
        return self.items

    def find_by_id(self, id_str):
        self._run("find_by_id", id_str)
        return self.item

    def create(self, req):
        self._run("create", req)
        return self.item

    def update(self, id_str, req):
        self._run("update", id_str, req)
        return self.item

    def delete(self, id_str):
        self._run("delete", id_str)


class FakeService:
    def __init__(self, result=None, error=None, items=()):
        self.result = result
        self.error = error
        self.items = list(items)
        self.calls = []

    def _run(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error
        return self.result

    def find_all(self):
        self._run("find_all")
        return self.items

    def find_by_id(self, id_str):
        return self._run("find_by_id", id_str)

    def create(self, req):
        return self._run("create", req)

    def update(self, id_str, req):
        return self._run("update", id_str, req)


class FakeRepo:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def _run(self, name, obj):
        self.calls.append((name, obj))
        if self.error is not None:
            raise self.error
        return obj

    def save(self, obj):
        return self._run("save", obj)

    def update(self, obj):
        return self._run("update", obj)

    def delete(self, obj):
        self._run("delete", obj)


def konsumen_client(service):
    app = Flask(__name__)
    controller = KonsumenController(service, logger=LOG)
    app.add_url_rule("/konsumen", view_func=controller.find_all, methods=["GET"])
    app.add_url_rule("/konsumen/<id>", view_func=controller.find_by_id, methods=["GET"])
    app.add_url_rule("/konsumen", view_func=controller.create, methods=["POST"])
    app.add_url_rule("/konsumen/<id>", view_func=controller.update, methods=["PUT"])
    app.add_url_rule("/konsumen/<id>", view_func=controller.delete, methods=["DELETE"])
    return app.test_client()


def limit_client(service, repo):
    app = Flask(__name__)
    controller = LimitController(service, repo, logger=LOG)
    app.add_url_rule("/limit", view_func=controller.find_all, methods=["GET"])
    app.add_url_rule("/limit/<id>", view_func=controller.find_by_id, methods=["GET"])
    app.add_url_rule("/limit", view_func=controller.create, methods=["POST"])
    app.add_url_rule("/limit/<id>", view_func=controller.update, methods=["PUT"])
    app.add_url_rule("/limit/<id>", view_func=controller.delete, methods=["DELETE"])
    return app.test_client()


def transaction_client(service, repo):
    app = Flask(__name__)
    controller = RecordTransactionController(service, repo, logger=LOG)
    app.add_url_rule("/transaction", view_func=controller.find_all, methods=["GET"])
    app.add_url_rule("/transaction/<id>", view_func=controller.find_by_id, methods=["GET"])
    app.add_url_rule("/transaction", view_func=controller.create, methods=["POST"])
    return app.test_client()


def konsumen_form(gaji):
    return {
        "nik": "1234567890123456",
        "fullname": "Budi",
        "legal_name": "Budi",
        "tempat_lahir": "Jakarta",
        "tanggal_lahir": "2000-01-01",
        "gaji": gaji,
        "foto_ktp": (io.BytesIO(b"dummy image content"), "ktp.jpg"),
        "foto_selfie": (io.BytesIO(b"dummy selfie content"), "selfie.jpg"),
    }


def sample_konsumen():
    return Konsumen(
        id=1,
        nik="1234567890123456",
        fullname="Budi",
        legal_name="Budi",
        tempat_lahir="Jakarta",
        tanggal_lahir=date(2000, 1, 1),
        gaji=10000000,
        foto_ktp="ktp.jpg",
        foto_selfie="selfie.jpg",
    )


TRANSACTION_BODY = {
    "konsumen_id": 1,
    "nomor_kontrak": "kontrak123",
    "otr": "otr123",
    "admin_fee": "10000",
    "jumlah_cicilan": "1050000",
    "jumlah_bunga": "50000",
    "nama_aset": "Mobil",
}


def test_create_konsumen_success():
    service = FakeKonsumenService(item=sample_konsumen())
    response = konsumen_client(service).post(
        "/konsumen", data=konsumen_form("10000000"), content_type="multipart/form-data"
    )
    assert response.status_code == 201
    assert response.get_json() == {"message": "data berhasil disimpan"}
    assert len(service.calls) == 1
    name, req = service.calls[0]
    assert name == "create"
    assert isinstance(req, CreateKonsumenRequest)
    assert req.nik == "1234567890123456"
    assert req.gaji == "10000000"
    assert req.foto_ktp.filename == "ktp.jpg"
    assert req.foto_selfie.filename == "selfie.jpg"


def test_create_konsumen_failed_on_empty_gaji():
    service = FakeKonsumenService()
    response = konsumen_client(service).post(
        "/konsumen", data=konsumen_form(""), content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert "Gaji" in response.get_json()["error"]
    assert service.calls == []


def test_create_konsumen_service_error_is_bad_request():
    service = FakeKonsumenService(error=ServiceError("validation error: NIK sudah terdaftar"))
    response = konsumen_client(service).post(
        "/konsumen", data=konsumen_form("10000000"), content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert response.get_json() == {"error": "validation error: NIK sudah terdaftar"}


def test_find_all_konsumen_passes_paging():
    service = FakeKonsumenService(items=[sample_konsumen()])
    response = konsumen_client(service).get("/konsumen?page=2&page_size=5&direction=asc")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert [item["nik"] for item in data] == ["1234567890123456"]
    assert service.calls == [("find_all", PageParams(page=2, page_size=5, sort="id", direction="asc"))]


def test_find_all_konsumen_bad_sort_is_server_error():
    service = FakeKonsumenService()
    response = konsumen_client(service).get("/konsumen?sort=id;drop")
    assert response.status_code == 500
    assert service.calls == []


def test_find_konsumen_by_id_error():
    service = FakeKonsumenService(error=ServiceError("invalid id"))
    response = konsumen_client(service).get("/konsumen/abc")
    assert response.status_code == 500
    assert response.get_json() == {"error": "invalid id"}


def test_find_konsumen_by_id_success():
    service = FakeKonsumenService(item=sample_konsumen())
    response = konsumen_client(service).get("/konsumen/1")
    assert response.status_code == 200
    assert response.get_json()["data"]["fullname"] == "Budi"
    assert service.calls == [("find_by_id", "1")]


def test_update_konsumen():
    service = FakeKonsumenService(item=sample_konsumen())
    response = konsumen_client(service).put("/konsumen/7", data={"fullname": "Ani"})
    assert response.status_code == 200
    assert response.get_json()["data"]["nik"] == "1234567890123456"
    assert service.calls == [("update", "7", UpdateKonsumenRequest(fullname="Ani"))]


def test_update_konsumen_error():
    service = FakeKonsumenService(error=ServiceError("gaji tidak valid"))
    response = konsumen_client(service).put("/konsumen/7", data={"gaji": "x"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "gaji tidak valid"}


def test_delete_konsumen():
    service = FakeKonsumenService()
    response = konsumen_client(service).delete("/konsumen/3")
    assert response.status_code == 200
    assert response.get_json() == {"message": "data berhasil dihapus"}
    assert service.calls == [("delete", "3")]


def test_delete_konsumen_not_found():
    service = FakeKonsumenService(error=RecordNotFound())
    response = konsumen_client(service).delete("/konsumen/3")
    assert response.status_code == 500
    assert response.get_json() == {"error": "record not found"}


def test_create_limit_controller():
    dummy_res = Limit(id=1, konsumen_id=1, tenor=1, limit_amount=1000000)
    service = FakeService(result=dummy_res)
    repo = FakeRepo()
    response = limit_client(service, repo).post(
        "/limit", json={"konsumen_id": 1, "tenor": 1, "limit_amount": "1000000"}
    )
    assert response.status_code == 201
    assert response.get_json() == {"message": "limit created successfully"}
    assert service.calls == [("create", CreateLimitRequest(konsumen_id=1, tenor=1, limit_amount="1000000"))]
    assert repo.calls == [("save", dummy_res)]


def test_create_limit_invalid_tenor():
    service = FakeService()
    repo = FakeRepo()
    response = limit_client(service, repo).post(
        "/limit", json={"konsumen_id": 1, "tenor": 9, "limit_amount": "1000000"}
    )
    assert response.status_code == 400
    assert "oneof" in response.get_json()["error"]
    assert service.calls == [] and repo.calls == []


def test_create_limit_invalid_json():
    service = FakeService()
    response = limit_client(service, FakeRepo()).post(
        "/limit", data="{not json", content_type="application/json"
    )
    assert response.status_code == 400
    assert service.calls == []


def test_create_limit_save_failure_is_server_error():
    dummy_res = Limit(konsumen_id=1, tenor=1, limit_amount=5)
    repo = FakeRepo(error=RuntimeError("db down"))
    response = limit_client(FakeService(result=dummy_res), repo).post(
        "/limit", json={"konsumen_id": 1, "tenor": 1, "limit_amount": "5"}
    )
    assert response.status_code == 500
    assert response.get_json() == {"error": "db down"}


def test_update_limit():
    limit = Limit(id=2, konsumen_id=1, tenor=2, limit_amount=300)
    service = FakeService(result=limit)
    repo = FakeRepo()
    response = limit_client(service, repo).put("/limit/2", json={"limit_amount": "300"})
    assert response.status_code == 200
    assert response.get_json() == {"message": "limit updated successfully"}
    assert service.calls == [("update", "2", UpdateLimitRequest(tenor=0, limit_amount="300"))]
    assert repo.calls == [("update", limit)]


def test_update_limit_service_error():
    service = FakeService(error=ServiceError("invalid limit amount"))
    repo = FakeRepo()
    response = limit_client(service, repo).put("/limit/2", json={"limit_amount": "x"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "invalid limit amount"}
    assert repo.calls == []


def test_delete_limit_not_found_is_bad_request():
    repo = FakeRepo()
    response = limit_client(FakeService(error=RecordNotFound()), repo).delete("/limit/8")
    assert response.status_code == 400
    assert response.get_json() == {"error": "record not found"}
    assert repo.calls == []


def test_delete_limit():
    limit = Limit(id=8, konsumen_id=1, tenor=1, limit_amount=100)
    repo = FakeRepo()
    response = limit_client(FakeService(result=limit), repo).delete("/limit/8")
    assert response.status_code == 200
    assert response.get_json() == {"message": "limit deleted successfully"}
    assert repo.calls == [("delete", limit)]


def test_find_limit_by_id_error():
    response = limit_client(FakeService(error=ServiceError("invalid id")), FakeRepo()).get("/limit/x")
    assert response.status_code == 500
    assert response.get_json() == {"error": "invalid id"}


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    with Session(engine) as db:
        yield db
    engine.dispose()


def test_limit_create_then_list_with_real_service(session):
    repo = LimitRepository(session)
    client = limit_client(LimitService(repo, logger=LOG), repo)
    created = client.post("/limit", json={"konsumen_id": 1, "tenor": 2, "limit_amount": "1000000"})
    assert created.status_code == 201
    listed = client.get("/limit")
    assert listed.status_code == 200
    data = listed.get_json()["data"]
    assert [(d["konsumen_id"], d["tenor"], d["limit_amount"]) for d in data] == [(1, 2, 1000000)]
    duplicate = client.post("/limit", json={"konsumen_id": 1, "tenor": 2, "limit_amount": "5"})
    assert duplicate.status_code == 400
    assert duplicate.get_json() == {"error": "limit already exist"}


def test_create_record_transaction_success():
    dummy_res = RecordTransaction(
        id=1,
        konsumen_id=1,
        nomor_kontrak="kontrak123",
        otr="otr123",
        admin_fee=10000,
        jumlah_cicilan=1050000,
        jumlah_bunga=50000,
        nama_aset="Mobil",
    )
    service = FakeService(result=dummy_res)
    repo = FakeRepo()
    response = transaction_client(service, repo).post("/transaction", json=TRANSACTION_BODY)
    assert response.status_code == 201
    assert response.get_json() == {"message": "record transaction created successfully"}
    assert service.calls == [("create", CreateRecordTransactionRequest(**TRANSACTION_BODY))]
    assert repo.calls == [("save", dummy_res)]


def test_create_record_transaction_failed():
    service = FakeService(result=RecordTransaction(konsumen_id=1))
    repo = FakeRepo()
    body = dict(TRANSACTION_BODY, nama_aset="")
    response = transaction_client(service, repo).post("/transaction", json=body)
    assert response.status_code == 400
    assert "NamaAset" in response.get_json()["error"]
    assert service.calls == [] and repo.calls == []


def test_create_record_transaction_rule_violation():
    service = FakeService(error=ServiceError("cicilan tidak ada"))
    repo = FakeRepo()
    response = transaction_client(service, repo).post("/transaction", json=TRANSACTION_BODY)
    assert response.status_code == 400
    assert response.get_json() == {"error": "cicilan tidak ada"}
    assert repo.calls == []


def test_find_all_transactions():
    record = RecordTransaction(id=4, konsumen_id=1, nomor_kontrak="k1", otr="o", nama_aset="Motor")
    response = transaction_client(FakeService(items=[record]), FakeRepo()).get("/transaction")
    assert response.status_code == 200
    assert [d["nomor_kontrak"] for d in response.get_json()["data"]] == ["k1"]


def test_find_transaction_by_id_error():
    response = transaction_client(FakeService(error=RecordNotFound()), FakeRepo()).get("/transaction/9")
    assert response.status_code == 500
    assert response.get_json() == {"error": "record not found"}