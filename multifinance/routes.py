"""URL registration for the consumer, limit and transaction endpoints."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from flask import Flask
from sqlalchemy.orm import Session

from multifinance.controllers import (
    KonsumenController,
    LimitController,
    RecordTransactionController,
)
from multifinance.repositories import (
    KonsumenRepository,
    LimitRepository,
    RecordTransactionRepository,
)
from multifinance.services import KonsumenService, LimitService, RecordTransactionService


def _route(app: Flask, rule: str, method: str, endpoint: str, view: Callable[..., Any]) -> None:
    app.add_url_rule(rule, endpoint=endpoint, view_func=view, methods=[method])


def register_konsumen_routes(
    app: Flask, session: Session, upload_dir: str | Path = "storage/uploads"
) -> KonsumenController:
    """Register the /konsumen endpoints and return their controller."""
    repository = KonsumenRepository(session)
    service = KonsumenService(repository, upload_dir)
    controller = KonsumenController(service)

    _route(app, "/konsumen", "GET", "konsumen_find_all", controller.find_all)
    _route(app, "/konsumen/<id>", "GET", "konsumen_find_by_id", controller.find_by_id)
    _route(app, "/konsumen", "POST", "konsumen_create", controller.create)
    _route(app, "/konsumen/<id>", "PUT", "konsumen_update", controller.update)
    _route(app, "/konsumen/<id>", "DELETE", "konsumen_delete", controller.delete)
    return controller


def register_limit_routes(app: Flask, session: Session) -> LimitController:
    """Register the /limit endpoints and return their controller."""
    repository = LimitRepository(session)
    service = LimitService(repository)
    controller = LimitController(service, repository)

    _route(app, "/limit", "GET", "limit_find_all", controller.find_all)
    _route(app, "/limit/<id>", "GET", "limit_find_by_id", controller.find_by_id)
    _route(app, "/limit", "POST", "limit_create", controller.create)
    _route(app, "/limit/<id>", "PUT", "limit_update", controller.update)
    _route(app, "/limit/<id>", "DELETE", "limit_delete", controller.delete)
    return controller


def register_record_transaction_routes(app: Flask, session: Session) -> RecordTransactionController:
    """Register the /transaction endpoints and return their controller."""
    transactions = RecordTransactionRepository(session)
    limits = LimitRepository(session)
    service = RecordTransactionService(transactions, limits)
    controller = RecordTransactionController(service, transactions)

    _route(app, "/transaction", "GET", "transaction_find_all", controller.find_all)
    _route(app, "/transaction/<id>", "GET", "transaction_find_by_id", controller.find_by_id)
    _route(app, "/transaction", "POST", "transaction_create", controller.create)
    return controller