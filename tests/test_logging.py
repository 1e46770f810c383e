"""Tests for structured JSON logging and LogContext."""

import json
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

from stock_kernel.domain.stock_critical import TransitionAction
from stock_kernel.exceptions import NegativeStockError
from stock_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def _record(msg="event", exc_info=None, **extra):
    record = logging.LogRecord("stock_kernel.test", logging.INFO, __file__, 1, msg, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _format(record):
    return json.loads(StructuredFormatter().format(record))


class TestStructuredFormatter:

    def test_base_fields(self):
        payload = _format(_record("movement_posted"))

        assert payload["message"] == "movement_posted"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "stock_kernel.test"
        assert "ts" in payload

    def test_extra_fields_are_serialised(self):
        @dataclass
        class Point:
            x: int

        inventory_id = uuid4()
        payload = _format(
            _record(
                inventory_id=inventory_id,
                amount=Decimal("1.50"),
                action=TransitionAction.RESENT,
                point=Point(3),
            )
        )

        assert payload["inventory_id"] == str(inventory_id)
        assert payload["amount"] == "1.50"
        assert payload["action"] == "resent"
        assert payload["point"] == {"x": 3}

    def test_context_fields_are_included(self):
        with LogContext.bind(producer="test", batch_id="b-1"):
            payload = _format(_record())

        assert payload["producer"] == "test"
        assert payload["batch_id"] == "b-1"

    def test_exception_fields(self):
        inventory_id = uuid4()
        try:
            raise NegativeStockError(str(inventory_id), current_stock=2, resulting_stock=-3)
        except NegativeStockError:
            payload = _format(_record("movement_rejected", exc_info=sys.exc_info()))

        assert payload["exc_type"] == "NegativeStockError"
        assert payload["exc_code"] == "STOCK_NEGATIVO"
        assert payload["exc_current_stock"] == 2
        assert payload["exc_resulting_stock"] == -3
        assert "Traceback" in payload["traceback"]


class TestLogContext:

    def test_bind_restores_previous_values(self):
        LogContext.set(producer="outer")

        with LogContext.bind(producer="inner", actor_id=uuid4()):
            assert LogContext.get_all()["producer"] == "inner"

        assert LogContext.get_all() == {"producer": "outer"}

    def test_bind_stringifies(self):
        actor_id = uuid4()

        with LogContext.bind(actor_id=actor_id):
            assert LogContext.get_all() == {"actor_id": str(actor_id)}

    def test_none_values_are_ignored(self):
        with LogContext.bind(producer=None, batch_id="x"):
            assert LogContext.get_all() == {"batch_id": "x"}

    def test_clear(self):
        LogContext.set(correlation_id="c", inventory_id="i")
        LogContext.clear()

        assert LogContext.get_all() == {}


class TestGetLogger:

    def test_namespaced(self, captured_logs):
        logger = get_logger("services.example")
        logger.info("example_event", extra={"value": 1})

        assert logger.name == "stock_kernel.services.example"
        assert {"message": "example_event", "value": 1}.items() <= captured_logs()[-1].items()
