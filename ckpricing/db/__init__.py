from ckpricing.db.database import init_db
from ckpricing.db.operations import (
    ProductNotFoundError,
    ProductRepository,
    create_product,
    get_product,
    product_to_record,
)

__all__ = [
    "ProductNotFoundError",
    "ProductRepository",
    "create_product",
    "get_product",
    "init_db",
    "product_to_record",
]
