# storefront/db.py
#
# Connection factory + schema bootstrap.
#
# Every repository call opens its own connection through
# ConnectionFactory.connection() and it is closed again on the way out,
# success or failure. No pooling here - if you want one, put pgbouncer
# in front of the database.
#
# Two drivers are supported, picked from the DSN scheme:
#   sqlite:///store.db               -> sqlite3 (stdlib)
#   postgresql://user:pw@host/db     -> psycopg2

import logging
import sqlite3
import time
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator

from storefront import config
from storefront.errors import ConfigurationError, RepositoryError

logger = logging.getLogger(__name__)

# Column limits: INTEGER ids/quantities, DECIMAL(14,2) money
MAX_INT = 2**31 - 1
MAX_MONEY = Decimal("999999999999.99")


class SQLiteDialect:
    name = "sqlite"
    errors = (sqlite3.Error,)

    create_products = """
        CREATE TABLE IF NOT EXISTS products (
            id    INTEGER PRIMARY KEY AUTOINCREMENT,
            name  VARCHAR(255),
            price DECIMAL(14,2)
        )
    """
    create_orders = """
        CREATE TABLE IF NOT EXISTS orders (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            product_id INTEGER,
            quantity   INTEGER,
            total      DECIMAL(14,2),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, dsn: str):
        self.path = dsn[len("sqlite:///"):]
        if not self.path:
            raise ConfigurationError(f"No database path in DSN: {dsn!r}")

    def connect(self):
        # timeout = how long a writer waits on the file lock
        return sqlite3.connect(self.path, timeout=10)

    def prepare(self, sql: str) -> str:
        return sql

    def adapt(self, params):
        # sqlite3 can't bind Decimal, send it as text and let NUMERIC affinity convert
        return tuple(str(p) if isinstance(p, Decimal) else p for p in params)


class PostgresDialect:
    name = "postgresql"

    create_products = """
        CREATE TABLE IF NOT EXISTS products (
            id    SERIAL PRIMARY KEY,
            name  VARCHAR(255),
            price DECIMAL(14,2)
        )
    """
    create_orders = """
        CREATE TABLE IF NOT EXISTS orders (
            id         SERIAL PRIMARY KEY,
            product_id INTEGER,
            quantity   INTEGER,
            total      DECIMAL(14,2),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, dsn: str):
        import psycopg2

        self._driver = psycopg2
        self.errors = (psycopg2.Error,)
        self.dsn = dsn

    def connect(self):
        return self._driver.connect(self.dsn)

    def prepare(self, sql: str) -> str:
        # queries are written with qmark placeholders, psycopg2 wants %s
        return sql.replace("?", "%s")

    def adapt(self, params):
        return params


def dialect_for(dsn: str):
    if dsn.startswith("sqlite:///"):
        return SQLiteDialect(dsn)
    if dsn.startswith(("postgresql://", "postgres://")):
        return PostgresDialect(dsn)
    raise ConfigurationError(f"Unsupported DATABASE_DSN scheme: {dsn.split(':', 1)[0]!r}")


class ConnectionFactory:
    """
    Hands out one fresh connection per logical operation.

        with factory.connection() as conn:
            cur = factory.execute(conn, "SELECT ...", (1,))

    Commits on a clean exit, rolls back otherwise, always closes.
    Driver errors come out as RepositoryError.
    """

    def __init__(self, dsn: str = None):
        self.dsn = dsn or config.DATABASE_DSN
        self.dialect = dialect_for(self.dsn)

    @contextmanager
    def connection(self) -> Iterator:
        try:
            conn = self.dialect.connect()
        except self.dialect.errors as e:
            raise RepositoryError(f"Could not connect to {self.dialect.name} database: {e}") from e

        try:
            yield conn
            conn.commit()
        except self.dialect.errors as e:
            self._rollback(conn)
            raise RepositoryError(f"Database error: {e}") from e
        except Exception:
            self._rollback(conn)
            raise
        finally:
            conn.close()

    def _rollback(self, conn):
        """
        Roll back, tolerating a connection that is already dead.
        The error that got us here is the one worth raising.
        """
        try:
            conn.rollback()
        except self.dialect.errors as e:
            logger.warning(f"Rollback failed: {e}")

    def execute(self, conn, sql: str, params=()):
        """Run one statement and return the cursor. Logs timing at DEBUG."""
        start = time.time()
        cur = conn.cursor()
        cur.execute(self.dialect.prepare(sql), self.dialect.adapt(params))
        elapsed = (time.time() - start) * 1000
        logger.debug("query took %.2fms: %s", elapsed, " ".join(sql.split()))
        return cur


def init_db(factory: ConnectionFactory) -> int:
    """
    Create both tables if missing and seed the catalog if it's empty.
    Safe to run on every start. Returns how many products were seeded.

    Any failure propagates - the caller must not start serving.
    """
    seeded = 0
    dialect = factory.dialect

    with factory.connection() as conn:
        factory.execute(conn, dialect.create_products)
        factory.execute(conn, dialect.create_orders)

        count = factory.execute(conn, "SELECT COUNT(*) FROM products").fetchone()[0]
        if count == 0:
            for name, price in config.SAMPLE_PRODUCTS:
                factory.execute(
                    conn,
                    "INSERT INTO products (name, price) VALUES (?, ?)",
                    (name, Decimal(price))
                )
                seeded += 1
            logger.info(f"Sample products inserted: {seeded}")

    logger.info(f"Database initialized ({dialect.name})")
    return seeded


def drop_db(factory: ConnectionFactory):
    """Drop both tables. Used by scripts/seed_db.py --reset and the tests."""
    with factory.connection() as conn:
        factory.execute(conn, "DROP TABLE IF EXISTS orders")
        factory.execute(conn, "DROP TABLE IF EXISTS products")
    logger.info("Dropped products and orders tables")
