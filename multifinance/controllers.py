"""HTTP handlers for consumers, credit limits and transactions."""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Response, jsonify, request

from multifinance.dto import (
    CreateKonsumenRequest,
    CreateLimitRequest,
    CreateRecordTransactionRequest,
    UpdateKonsumenRequest,
    UpdateLimitRequest,
)
from multifinance.logger import get_logger
from multifinance.repositories import LimitRepository, PageParams, RecordTransactionRepository
from multifinance.services import KonsumenService, LimitService, RecordTransactionService

Reply = tuple[Response, int]


def _json_body() -> Any:
    return request.get_json(force=True, silent=True)


class _Controller:
    _log_name = "app"

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger

    @property
    def log(self) -> logging.Logger:
        if self._logger is None:
            self._logger = get_logger(self._log_name)
        return self._logger

    def _error(self, exc: BaseException, status: int) -> Reply:
        message = str(exc)
        self.log.error(message)
        return jsonify(error=message), status


class KonsumenController(_Controller):
    """Endpoints under /konsumen."""

    _log_name = "KonsumenController"

    def __init__(self, service: KonsumenService, logger: Optional[logging.Logger] = None) -> None:
        super().__init__(logger)
        self.service = service

    def find_all(self) -> Reply:
        """List one page of consumers."""
        self.log.info("All Konsumen Start")
        try:
            page = PageParams.from_query(request.args)
            konsumens = self.service.find_all(page)
        except Exception as exc:
            return self._error(exc, 500)
        return jsonify(data=[k.to_dict() for k in konsumens]), 200

    def find_by_id(self, id: str) -> Reply:
        """Show one consumer."""
        self.log.info("Detail Konsumen Start")
        try:
            konsumen = self.service.find_by_id(id)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Detail Konsumen End")
        return jsonify(data=konsumen.to_dict()), 200

    def create(self) -> Reply:
        """Register a consumer from a multipart form."""
        self.log.info("Create Konsumen Start")
        try:
            req = CreateKonsumenRequest.from_form(request.form, request.files)
        except Exception as exc:
            return self._error(exc, 400)
        try:
            self.service.create(req)
        except Exception as exc:
            return self._error(exc, 400)
        self.log.info("Create Konsumen End")
        return jsonify(message="data berhasil disimpan"), 201

    def update(self, id: str) -> Reply:
        """Change the fields of a consumer present in the form."""
        self.log.info("Update Konsumen Start")
        try:
            req = UpdateKonsumenRequest.from_form(request.form)
        except Exception as exc:
            return self._error(exc, 400)
        try:
            data = self.service.update(id, req)
        except Exception as exc:
            return self._error(exc, 400)
        self.log.info("Update Konsumen End")
        return jsonify(data=data.to_dict()), 200

    def delete(self, id: str) -> Reply:
        """Delete a consumer."""
        self.log.info("Delete Konsumen Start")
        try:
            self.service.delete(id)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Delete Konsumen End")
        return jsonify(message="data berhasil dihapus"), 200


class LimitController(_Controller):
    """Endpoints under /limit."""

    _log_name = "LimitController"

    def __init__(
        self,
        service: LimitService,
        repository: LimitRepository,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger)
        self.service = service
        self.repository = repository

    def find_all(self) -> Reply:
        """List every limit."""
        self.log.info("All Limit Start")
        try:
            limits = self.service.find_all()
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("All Limit End")
        return jsonify(data=[item.to_dict() for item in limits]), 200

    def find_by_id(self, id: str) -> Reply:
        """Show one limit."""
        self.log.info("Detail Limit Start")
        try:
            limit = self.service.find_by_id(id)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Detail Limit End")
        return jsonify(data=limit.to_dict()), 200

    def create(self) -> Reply:
        """Create a limit from a JSON body."""
        self.log.info("Create Limit Start")
        try:
            req = CreateLimitRequest.from_json(_json_body())
        except Exception as exc:
            return self._error(exc, 400)
        try:
            limit = self.service.create(req)
        except Exception as exc:
            return self._error(exc, 400)
        try:
            self.repository.save(limit)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Create Limit End")
        return jsonify(message="limit created successfully"), 201

    def update(self, id: str) -> Reply:
        """Change the amount of a limit."""
        self.log.info("Update Limit Start")
        try:
            req = UpdateLimitRequest.from_json(_json_body())
        except Exception as exc:
            return self._error(exc, 400)
        try:
            limit = self.service.update(id, req)
        except Exception as exc:
            return self._error(exc, 400)
        try:
            self.repository.update(limit)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Update Limit End")
        return jsonify(message="limit updated successfully"), 200

    def delete(self, id: str) -> Reply:
        """Delete a limit."""
        self.log.info("Delete Limit Start")
        try:
            limit = self.service.find_by_id(id)
        except Exception as exc:
            return self._error(exc, 400)
        try:
            self.repository.delete(limit)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Delete Limit End")
        return jsonify(message="limit deleted successfully"), 200


class RecordTransactionController(_Controller):
    """Endpoints under /transaction."""

    _log_name = "TransactionController"

    def __init__(
        self,
        service: RecordTransactionService,
        repository: RecordTransactionRepository,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger)
        self.service = service
        self.repository = repository

    def find_all(self) -> Reply:
        """List every transaction."""
        self.log.info("All Transaction Start")
        try:
            transactions = self.service.find_all()
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("All Transaction End")
        return jsonify(data=[t.to_dict() for t in transactions]), 200

    def find_by_id(self, id: str) -> Reply:
        """Show one transaction."""
        self.log.info("Detail Transaction Start")
        try:
            transaction = self.service.find_by_id(id)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Detail Transaction End")
        return jsonify(data=transaction.to_dict()), 200

    def create(self) -> Reply:
        """Record a transaction from a JSON body."""
        self.log.info("Create Transaction Start")
        try:
            req = CreateRecordTransactionRequest.from_json(_json_body())
        except Exception as exc:
            return self._error(exc, 400)
        try:
            transaction = self.service.create(req)
        except Exception as exc:
            return self._error(exc, 400)
        try:
            self.repository.save(transaction)
        except Exception as exc:
            return self._error(exc, 500)
        self.log.info("Create Transaction End")
        return jsonify(message="record transaction created successfully"), 201