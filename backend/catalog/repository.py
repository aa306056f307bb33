from typing import Any, Dict, List
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.models.db import ProductRow

logger = logging.getLogger(__name__)

def list_products(session: Session, offset: int, limit: int) -> List[ProductRow]:
    stmt = select(ProductRow).order_by(ProductRow.created_at.desc(), ProductRow.id).offset(offset).limit(limit)
    return list(session.execute(stmt).scalars().all())

def insert_product(session: Session, data: Dict[str, Any]) -> ProductRow:
    product = ProductRow(
        name=data["name"],
        description=data.get("description"),
        category=data.get("category"),
        price=data["price"],
        stock=data["stock"],
    )
    session.add(product)
    session.flush()
    return product
