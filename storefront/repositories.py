# storefront/repositories.py
#
# Plain data access. Fixed, parameterized queries, one connection per call.
# The only observability here is the orders counter bump after an insert.

from typing import List, Optional

from storefront.db import ConnectionFactory
from storefront.metrics import StoreMetrics
from storefront.models import Order, Product


class ProductRepository:

    def __init__(self, factory: ConnectionFactory):
        self.factory = factory

    def list_all(self) -> List[Product]:
        """Every product, lowest id first. Empty list if there are none."""
        with self.factory.connection() as conn:
            rows = self.factory.execute(
                conn, "SELECT id, name, price FROM products ORDER BY id"
            ).fetchall()

        return [Product(id=r[0], name=r[1], price=r[2]) for r in rows]

    def get_by_id(self, product_id: int) -> Optional[Product]:
        with self.factory.connection() as conn:
            row = self.factory.execute(
                conn,
                "SELECT id, name, price FROM products WHERE id = ?",
                (product_id,)
            ).fetchone()

        if row is None:
            return None
        return Product(id=row[0], name=row[1], price=row[2])


class OrderRepository:

    def __init__(self, factory: ConnectionFactory, metrics: StoreMetrics):
        self.factory = factory
        self.metrics = metrics

    def create(self, product_id: int, quantity: int, total) -> int:
        """
        Insert one order and return its generated id.
        orders_created_total goes up only once the insert has committed.
        """
        with self.factory.connection() as conn:
            order_id = self.factory.execute(
                conn,
                "INSERT INTO orders (product_id, quantity, total) "
                "VALUES (?, ?, ?) RETURNING id",
                (product_id, quantity, total)
            ).fetchall()[0][0]

        self.metrics.orders_created_total.inc()
        return order_id

    def get_by_id(self, order_id: int) -> Optional[Order]:
        with self.factory.connection() as conn:
            row = self.factory.execute(
                conn,
                "SELECT id, product_id, quantity, total, created_at "
                "FROM orders WHERE id = ?",
                (order_id,)
            ).fetchone()

        if row is None:
            return None
        return Order(
            id=row[0],
            product_id=row[1],
            quantity=row[2],
            total=row[3],
            created_at=row[4],
        )
