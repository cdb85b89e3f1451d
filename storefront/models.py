# storefront/models.py
#
# The two entities the storefront works with.
# Both live in the database; these are request-scoped copies.

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Normalize a driver value to a 2-place Decimal.
    SQLite hands back int/float for NUMERIC columns, Postgres hands back Decimal.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS)


class Product(BaseModel):
    """Created only by the seed step, never mutated"""

    id: int
    name: str
    price: Decimal = Field(ge=0)

    @field_validator("price", mode="before")
    @classmethod
    def _price_to_money(cls, value):
        return to_money(value)


class Order(BaseModel):
    """
    One row per successful checkout.
    total = product price * quantity at the time of checkout,
    computed by the handler, not the database.
    """

    id: int
    product_id: int
    quantity: int
    total: Decimal
    created_at: datetime

    @field_validator("total", mode="before")
    @classmethod
    def _total_to_money(cls, value):
        return to_money(value)
