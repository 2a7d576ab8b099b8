from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gostwear.repositories.json_storage import StoreError
from gostwear.services.catalog_service import CatalogService, CatalogUnavailableError

router = APIRouter(prefix="/api/products", tags=["products"])
logger = logging.getLogger(__name__)


def _get_catalog_service(request: Request) -> CatalogService:
    svc = getattr(getattr(request.app, "state", None), "catalog_service", None)
    if not svc:
        raise RuntimeError("CatalogService not configured")
    return svc


@router.get("")
def list_products(request: Request):
    svc = _get_catalog_service(request)
    try:
        products = svc.list_products()
    except CatalogUnavailableError:
        return JSONResponse({"error": "Products file not found"}, status_code=404)
    except StoreError:
        logger.exception("Error reading products")
        return JSONResponse({"error": "Failed to load products"}, status_code=500)
    return products


@router.get("/{product_id}")
def get_product(product_id: str, request: Request):
    svc = _get_catalog_service(request)
    try:
        product = svc.get_product(product_id)
    except StoreError:
        logger.exception("Error reading single product")
        return JSONResponse({"error": "Error loading product data"}, status_code=500)
    if product is None:
        return JSONResponse({"error": "Product not found"}, status_code=404)
    return product
