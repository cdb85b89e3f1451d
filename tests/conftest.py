"""
Shared fixtures: a throwaway database per test, app + client on top.

Every test that uses `factory` runs once against SQLite and once against
Postgres. The Postgres run is skipped unless STOREFRONT_TEST_POSTGRES_DSN
points at a scratch database (its products/orders tables get dropped).
"""

import os

import pytest
from prometheus_client import CollectorRegistry

from storefront.db import ConnectionFactory, drop_db, init_db
from storefront.main import create_app
from storefront.metrics import StoreMetrics

POSTGRES_DSN = os.getenv("STOREFRONT_TEST_POSTGRES_DSN")


@pytest.fixture
def sqlite_factory(tmp_path):
    """SQLite-only factory, for tests that reach into the sqlite3 connection."""
    return ConnectionFactory(f"sqlite:///{tmp_path / 'store.db'}")


@pytest.fixture(params=[
    "sqlite",
    pytest.param(
        "postgresql",
        marks=pytest.mark.skipif(not POSTGRES_DSN, reason="STOREFRONT_TEST_POSTGRES_DSN not set"),
    ),
])
def factory(request, tmp_path):
    """Factory pointing at an empty database - no tables yet."""
    if request.param == "sqlite":
        yield ConnectionFactory(f"sqlite:///{tmp_path / 'store.db'}")
    else:
        factory = ConnectionFactory(POSTGRES_DSN)
        drop_db(factory)
        yield factory
        drop_db(factory)


@pytest.fixture
def seeded_factory(factory):
    init_db(factory)
    return factory


@pytest.fixture
def run_sql(factory):
    """Run one statement behind the app's back, return any rows."""

    def run(sql, params=()):
        with factory.connection() as conn:
            cur = factory.execute(conn, sql, params)
            return cur.fetchall() if cur.description else []

    return run


@pytest.fixture
def metrics():
    return StoreMetrics(registry=CollectorRegistry())


@pytest.fixture
def app(seeded_factory, metrics):
    return create_app(seeded_factory, metrics)


@pytest.fixture
def client(app):
    return app.test_client()
