from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from fastapi import HTTPException, status
from uuid import UUID
from typing import Dict, Any, List, Optional
from decimal import Decimal
from app.modules.brands.models import Brand, BrandProduct, ContractType
from app.modules.brands.schemas import (
    BrandCreate, BrandUpdate, BrandProductCreate, BrandProductUpdate, StockUpdate
)
from app.modules.sales.models import Sale
import logging

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def product_key(tag: str, raw_key: str) -> str:
    """Clave completa del producto: TAG-CLAVE, sin duplicar el prefijo"""
    if raw_key.upper().startswith(f"{tag}-"):
        raw_key = raw_key[len(tag) + 1:]
    return f"{tag}-{raw_key}"


def validate_contract(contract_type: ContractType, contract_value: Optional[Decimal]) -> None:
    if contract_value is None or contract_value < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El valor del contrato no puede ser negativo"
        )
    if contract_type == ContractType.PERCENTAGE and contract_value > 100:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El porcentaje del contrato debe estar entre 0 y 100"
        )


class BrandService:
    """Servicio para gestión de marcas"""

    def __init__(self, db: Session):
        self.db = db

    def create_brand(self, brand_data: BrandCreate) -> Brand:
        """
        Crear nueva marca con sus productos consignados

        Args:
            brand_data: Datos de la marca

        Returns:
            Brand: Marca creada

        Raises:
            HTTPException: Si ya existe una marca con el mismo nombre o clave
        """
        try:
            existing = self.db.query(Brand).filter(
                or_(Brand.name == brand_data.name, Brand.tag == brand_data.tag)
            ).first()

            if existing:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Ya existe una marca con este nombre o clave"
                )

            brand = Brand(
                name=brand_data.name,
                tag=brand_data.tag,
                description=brand_data.description,
                location=brand_data.location,
                contract_type=brand_data.contract_type,
                contract_value=brand_data.contract_value,
                contact=brand_data.contact,
                bank=brand_data.bank,
                account_number=brand_data.account_number,
                clabe=brand_data.clabe,
                card=brand_data.card,
                created_by=brand_data.created_by
            )
            brand.products = self._build_products(brand_data.tag, brand_data.products)

            self.db.add(brand)
            self.db.commit()
            self.db.refresh(brand)
            logger.info(f"Brand {brand.tag} created with contract {brand.contract_type.value}")
            return brand

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe una marca con esta clave o nombre"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating brand: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error interno: {str(e)}"
            )

    def _build_products(self, tag: str, products: List[BrandProductCreate], start: int = 0) -> List[BrandProduct]:
        """Normaliza claves y nombres de productos: la clave queda como TAG-CLAVE"""
        built = []
        for index, product in enumerate(products, start=start + 1):
            raw_key = product.key or f"PROD{index:03d}"
            built.append(BrandProduct(
                key=product_key(tag, raw_key),
                name=product.name or product.key or f"Producto {index}",
                description=product.description or "",
                price=product.price,
                quantity=product.quantity,
                received_at=product.received_at
            ))
        return built

    def get_all_brands(
        self,
        limit: int = 100,
        offset: int = 0,
        is_active: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Listar marcas con paginación

        Args:
            is_active: Filtra por estado; None lista todas

        Returns:
            Dict con brands, total, limit, offset
        """
        query = self.db.query(Brand)
        if is_active is not None:
            query = query.filter(Brand.is_active == is_active)
        query = query.order_by(Brand.name)
        total = query.count()
        brands = query.offset(offset).limit(limit).all()

        return {
            "brands": brands,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_brand_by_id(self, brand_id: UUID) -> Brand:
        brand = self.db.query(Brand).filter(Brand.id == brand_id).first()

        if not brand:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Marca no encontrada"
            )
        return brand

    def get_brand_by_tag(self, tag: str) -> Brand:
        brand = self.db.query(Brand).filter(Brand.tag == tag.upper()).first()

        if not brand:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Marca no encontrada"
            )
        return brand

    def get_brand(self, identifier: str) -> Brand:
        """Buscar marca por ID o por clave (tag)"""
        try:
            brand_id = UUID(identifier)
        except ValueError:
            return self.get_brand_by_tag(identifier)
        return self.get_brand_by_id(brand_id)

    def update_brand(self, brand_id: UUID, update_data: BrandUpdate) -> Brand:
        """
        Actualizar marca

        Los cambios de contrato no afectan ventas ya registradas: cada venta
        guarda una copia del contrato vigente al momento de registrarse.
        """
        try:
            brand = self.get_brand_by_id(brand_id)

            if update_data.name and update_data.name != brand.name:
                existing = self.db.query(Brand).filter(
                    Brand.name == update_data.name,
                    Brand.id != brand_id
                ).first()

                if existing:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"Ya existe otra marca con el nombre '{update_data.name}'"
                    )

            if update_data.tag and update_data.tag != brand.tag:
                existing = self.db.query(Brand).filter(
                    Brand.tag == update_data.tag,
                    Brand.id != brand_id
                ).first()

                if existing:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"Ya existe otra marca con la clave '{update_data.tag}'"
                    )

            update_dict = update_data.model_dump(exclude_unset=True)
            validate_contract(
                update_dict.get("contract_type", brand.contract_type),
                update_dict.get("contract_value", brand.contract_value)
            )

            old_tag = brand.tag
            for field, value in update_dict.items():
                setattr(brand, field, value)

            if brand.tag != old_tag:
                for product in brand.products:
                    if product.key.startswith(f"{old_tag}-"):
                        product.key = f"{brand.tag}-{product.key[len(old_tag) + 1:]}"
                logger.info(f"Brand {old_tag} renamed to {brand.tag}, product keys updated")

            self.db.commit()
            self.db.refresh(brand)
            return brand

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando marca: {str(e)}"
            )

    def add_products(self, brand_id: UUID, products: List[BrandProductCreate]) -> Brand:
        try:
            brand = self.get_brand_by_id(brand_id)
            new_products = self._build_products(brand.tag, products, start=len(brand.products))

            existing_keys = {p.key for p in brand.products}
            duplicated = [p.key for p in new_products if p.key in existing_keys]
            if duplicated:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Productos duplicados: {', '.join(duplicated)}"
                )

            brand.products.extend(new_products)
            self.db.commit()
            self.db.refresh(brand)
            return brand

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Error de integridad al agregar productos"
            )
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error agregando productos: {str(e)}"
            )

    def update_stock(self, tag: str, stock_data: StockUpdate) -> BrandProduct:
        """Fijar la existencia de un producto de la marca"""
        brand = self.get_brand_by_tag(tag)
        product = next((p for p in brand.products if p.key == stock_data.product_key), None)

        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto o marca no encontrados"
            )

        try:
            product.quantity = stock_data.quantity
            self.db.commit()
            self.db.refresh(product)
            return product
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando stock: {str(e)}"
            )

    def get_product(self, brand_id: UUID, product_id: UUID) -> BrandProduct:
        brand = self.get_brand_by_id(brand_id)
        product = next((p for p in brand.products if p.id == product_id), None)

        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado"
            )
        return product

    def update_product(self, brand_id: UUID, product_id: UUID, update_data: BrandProductUpdate) -> BrandProduct:
        """
        Editar un producto consignado

        La clave se guarda con el prefijo del tag de la marca. Las ventas ya
        registradas conservan la clave y el nombre que tenían al venderse.
        """
        try:
            product = self.get_product(brand_id, product_id)
            update_dict = update_data.model_dump(exclude_unset=True)

            if "key" in update_dict:
                update_dict["key"] = product_key(product.brand.tag, update_dict["key"])
                duplicated = self.db.query(BrandProduct).filter(
                    BrandProduct.brand_id == brand_id,
                    BrandProduct.key == update_dict["key"],
                    BrandProduct.id != product_id
                ).first()
                if duplicated:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"Ya existe un producto con la clave '{update_dict['key']}'"
                    )

            for field, value in update_dict.items():
                setattr(product, field, value)

            self.db.commit()
            self.db.refresh(product)
            return product

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Error de integridad al actualizar el producto"
            )
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando producto: {str(e)}"
            )

    def delete_product(self, brand_id: UUID, product_id: UUID) -> Dict[str, str]:
        try:
            product = self.get_product(brand_id, product_id)
            key = product.key

            self.db.delete(product)
            self.db.commit()
            logger.info(f"Product {key} deleted")
            return {"message": "Producto eliminado exitosamente", "key": key}

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error eliminando producto: {str(e)}"
            )

    def search_products(self, term: str) -> Dict[str, Any]:
        """
        Buscar productos de todas las marcas por nombre, clave o descripción

        Args:
            term: Texto a buscar, mínimo 2 caracteres, sin distinguir mayúsculas

        Returns:
            Dict con results (producto + marca) y count
        """
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Término de búsqueda muy corto (mínimo {MIN_SEARCH_LENGTH} caracteres)"
            )

        search_term = f"%{term}%"
        rows = self.db.query(BrandProduct, Brand).join(
            Brand, BrandProduct.brand_id == Brand.id
        ).filter(
            or_(
                BrandProduct.name.ilike(search_term),
                BrandProduct.key.ilike(search_term),
                BrandProduct.description.ilike(search_term)
            )
        ).order_by(Brand.name, BrandProduct.key).all()

        results = [
            {
                "id": product.id,
                "key": product.key,
                "name": product.name,
                "description": product.description,
                "price": product.price,
                "quantity": product.quantity,
                "received_at": product.received_at,
                "brand_id": brand.id,
                "brand_name": brand.name,
                "brand_tag": brand.tag
            }
            for product, brand in rows
        ]
        return {"results": results, "count": len(results)}

    def delete_brand(self, brand_id: UUID) -> Dict[str, str]:
        """
        Eliminar marca

        No se permite eliminar marcas con ventas registradas.
        """
        try:
            brand = self.get_brand_by_id(brand_id)

            has_sales = self.db.query(Sale.id).filter(Sale.brand_id == brand_id).first()
            if has_sales:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="La marca tiene ventas registradas y no puede eliminarse"
                )

            self.db.delete(brand)
            self.db.commit()
            return {"message": "Marca eliminada exitosamente"}

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error eliminando marca: {str(e)}"
            )
