from fastapi import APIRouter, status, Query
from typing import List, Optional
from app.dependencies.dbDependecies import db_dependency
from app.modules.brands import service
from app.modules.brands.schemas import (
    BrandCreate, BrandUpdate, BrandOut, BrandList,
    BrandProductCreate, BrandProductUpdate, BrandProductOut, StockUpdate,
    ProductSearchList
)
from app.core.config import settings
from uuid import UUID

brand_router = APIRouter(tags=["Brands"])

@brand_router.post("/", response_model=BrandOut, status_code=status.HTTP_201_CREATED)
def create_brand(brand: BrandCreate, db: db_dependency):
    brand_service = service.BrandService(db)
    return brand_service.create_brand(brand)

@brand_router.get("/", response_model=BrandList)
def list_brands(
    db: db_dependency,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    is_active: Optional[bool] = Query(None)
):
    brand_service = service.BrandService(db)
    return brand_service.get_all_brands(limit, offset, is_active)

@brand_router.get("/search/products", response_model=ProductSearchList)
def search_products(db: db_dependency, q: str = Query(..., description="Nombre, clave o descripción")):
    brand_service = service.BrandService(db)
    return brand_service.search_products(q)

@brand_router.get("/{identifier}", response_model=BrandOut)
def get_brand(identifier: str, db: db_dependency):
    """Obtener marca por ID o por clave de 4 caracteres"""
    brand_service = service.BrandService(db)
    return brand_service.get_brand(identifier)

@brand_router.patch("/{brand_id}", response_model=BrandOut)
def update_brand(brand_id: UUID, update: BrandUpdate, db: db_dependency):
    brand_service = service.BrandService(db)
    return brand_service.update_brand(brand_id, update)

@brand_router.post("/{brand_id}/products", response_model=BrandOut, status_code=status.HTTP_201_CREATED)
def add_products(brand_id: UUID, products: List[BrandProductCreate], db: db_dependency):
    brand_service = service.BrandService(db)
    return brand_service.add_products(brand_id, products)

@brand_router.put("/{brand_id}/products/{product_id}", response_model=BrandProductOut)
def update_product(brand_id: UUID, product_id: UUID, update: BrandProductUpdate, db: db_dependency):
    brand_service = service.BrandService(db)
    return brand_service.update_product(brand_id, product_id, update)

@brand_router.delete("/{brand_id}/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(brand_id: UUID, product_id: UUID, db: db_dependency):
    brand_service = service.BrandService(db)
    brand_service.delete_product(brand_id, product_id)

@brand_router.put("/{tag}/stock", response_model=BrandProductOut)
def update_stock(tag: str, stock: StockUpdate, db: db_dependency):
    brand_service = service.BrandService(db)
    return brand_service.update_stock(tag, stock)

@brand_router.delete("/{brand_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_brand(brand_id: UUID, db: db_dependency):
    brand_service = service.BrandService(db)
    brand_service.delete_brand(brand_id)
