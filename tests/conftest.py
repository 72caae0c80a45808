from datetime import datetime, timedelta, timezone

import pytest

from src.db import get_connection, init_db
from src.models import Metal, Product

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def conn(tmp_path):
    connection = get_connection(tmp_path / "store.db")
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture
def make_product():
    def factory(product_id=1, metal=Metal.GOLD, weight=10.0, making=5000.0, age_days=0, **fields):
        fields.setdefault("name", f"Piece {product_id}")
        fields.setdefault("category", "Gold" if metal is Metal.GOLD else "Silver")
        return Product(
            id=product_id,
            metal=metal,
            weight_grams=weight,
            making_charge=making,
            created_at=BASE_TIME - timedelta(days=age_days),
            **fields,
        )

    return factory
