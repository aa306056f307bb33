# module backend.catalog.views
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from backend.catalog import service as catalog_service
from backend.infra.database import Database, get_database
from backend.utils.responses import ok
from backend.utils.security import require_admin

router = APIRouter(prefix="/api/v1/products", tags=["Products API"])


class InsertProductsRequest(BaseModel):
    products: List[Dict[str, Any]]


@router.get("")
def api_list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=catalog_service.MAX_PAGE_SIZE),
    db: Database = Depends(get_database),
):
    """Listing public paginé (?page=1&limit=10)."""
    products = catalog_service.list_products(db, page=page, limit=limit)
    if not products:
        return ok("Aucun produit trouvé", [])
    return ok("Produits récupérés", products)


@router.post("")
def api_insert_products(
    payload: InsertProductsRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    db: Database = Depends(get_database),
):
    """Insertion en lot (admin): {"products": [{name, price, stock, description?, category?}, ...]}."""
    inserted = catalog_service.insert_products(db, payload.products)
    return ok("Produits insérés", inserted)
