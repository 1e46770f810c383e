"""
Pytest fixtures for the stock kernel test suite.

Provides:
- A fresh database per test (in-memory SQLite by default)
- Deterministic clock and actor
- Product / inventory builders
- Structured log capture

Environment Variables:
- STOCK_TEST_DATABASE_URL: database URL for the suite. Defaults to
  ``sqlite://`` (in-memory). Point it at PostgreSQL to also run the tests
  marked ``postgres`` (row locks, concurrent transactions).
"""

import json
import logging
import os
from uuid import uuid4

import pytest
from sqlalchemy.engine import make_url

from stock_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.domain.stock_critical import StockCriticalPolicy
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.product import Product

DEFAULT_TEST_URL = "sqlite://"


def get_database_url() -> str:
    return os.environ.get("STOCK_TEST_DATABASE_URL", DEFAULT_TEST_URL)


def _is_postgres_url(url: str) -> bool:
    return make_url(url).get_backend_name() == "postgresql"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


def pytest_collection_modifyitems(config, items):
    if _is_postgres_url(get_database_url()):
        return
    skip_pg = pytest.mark.skip(reason="needs STOCK_TEST_DATABASE_URL pointing at PostgreSQL")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _quiet_structured_logging():
    """DEBUG level so every event reaches captured_logs; nothing is printed."""
    reset_logging()
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _fresh_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


class _JsonCollector(logging.Handler):
    """Formats each record with StructuredFormatter and keeps the parsed dict."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.setFormatter(StructuredFormatter())
        self.records: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(json.loads(self.format(record)))


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ...):
            ...
            logs = captured_logs()
            assert any(r["message"] == "movement_posted" for r in logs)
    """
    collector = _JsonCollector()
    kernel_logger = logging.getLogger("stock_kernel")
    kernel_logger.addHandler(collector)
    yield lambda: list(collector.records)
    kernel_logger.removeHandler(collector)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Engine with a freshly created schema; dropped after the test."""
    eng = init_engine_from_url(get_database_url(), pool_size=10, max_overflow=10)
    drop_tables()
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    """A session whose uncommitted work is rolled back after the test."""
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def test_actor_id():
    return uuid4()


@pytest.fixture
def policy():
    return StockCriticalPolicy()


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def make_product(session, test_actor_id):
    """Insert a product row directly (no service side effects)."""
    counter = {"n": 0}

    def _make(
        name: str = "Tornillo 3/8",
        kind: ProductKind = ProductKind.PRODUCT,
        sku: str | None = None,
    ) -> Product:
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']}",
            name=name,
            kind=kind,
            created_by_id=test_actor_id,
        )
        session.add(product)
        session.flush()
        return product

    return _make


@pytest.fixture
def make_inventory(session, test_actor_id, make_product):
    """
    Insert an inventory record directly, without running the evaluator.

    Creates a stock-tracked product unless one is given.
    """
    counter = {"n": 0}

    def _make(
        stock: int = 10,
        minimum_threshold: int = 5,
        product: Product | None = None,
        code: str | None = None,
    ) -> InventoryRecord:
        counter["n"] += 1
        product = product or make_product(name=f"Producto {counter['n']}")
        inventory = InventoryRecord(
            product_id=product.id,
            code=code or f"INV-{counter['n']}",
            stock=stock,
            minimum_threshold=minimum_threshold,
            created_by_id=test_actor_id,
        )
        inventory.product = product
        session.add(inventory)
        session.flush()
        return inventory

    return _make
