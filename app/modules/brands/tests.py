"""
Tests para el módulo de Marcas
"""

import pytest
from decimal import Decimal
from datetime import date
from uuid import uuid4
from fastapi import HTTPException
from pydantic import ValidationError

from app.modules.brands.models import ContractType
from app.modules.brands.schemas import (
    BrandCreate, BrandUpdate, BrandProductCreate, BrandProductUpdate, StockUpdate
)
from app.modules.brands.service import BrandService
from app.modules.cortes.schemas import CorteGenerate
from app.modules.cortes.service import CorteService
from app.modules.sales.schemas import SaleCreate
from app.modules.sales.service import SaleService


@pytest.fixture
def brand_data():
    return BrandCreate(
        name="Estética Centro",
        tag="estc",
        contract_type=ContractType.HOUSE_BRAND,
        bank="Banorte",
        clabe="072180000000000000",
        products=[
            BrandProductCreate(key="CORTE", name="Corte de cabello", price=Decimal("250"), quantity=5),
            BrandProductCreate(price=Decimal("90"), quantity=2),
        ]
    )


class TestBrandSchema:

    def test_tag_must_have_four_characters(self):
        with pytest.raises(ValidationError):
            BrandCreate(name="Luna", tag="LUN")

    def test_percentage_above_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            BrandCreate(name="Luna", tag="LUNA", contract_type=ContractType.PERCENTAGE,
                        contract_value=Decimal("120"))

    def test_update_percentage_above_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            BrandUpdate(contract_type=ContractType.PERCENTAGE, contract_value=Decimal("150"))

    def test_update_rejects_null_for_required_fields(self):
        for field in ("name", "tag", "contract_type", "contract_value"):
            with pytest.raises(ValidationError):
                BrandUpdate(**{field: None})

    def test_product_price_keeps_two_decimals(self):
        with pytest.raises(ValidationError):
            BrandProductCreate(key="P002", price=Decimal("10.005"))


class TestBrandService:

    def test_create_brand_normalizes_tag_and_product_keys(self, db_session, brand_data):
        brand = BrandService(db_session).create_brand(brand_data)

        assert brand.tag == "ESTC"
        assert brand.contract_type == ContractType.HOUSE_BRAND
        assert [p.key for p in brand.products] == ["ESTC-CORTE", "ESTC-PROD002"]
        assert brand.products[1].name == "Producto 2"

    def test_duplicate_name_or_tag(self, db_session, brand_data):
        service = BrandService(db_session)
        service.create_brand(brand_data)

        with pytest.raises(HTTPException) as exc:
            service.create_brand(BrandCreate(name="Otra", tag="ESTC"))
        assert exc.value.status_code == 409

    def test_get_by_id_or_tag(self, db_session, sample_brand):
        service = BrandService(db_session)
        assert service.get_brand("luna").id == sample_brand.id
        assert service.get_brand(str(sample_brand.id)).tag == "LUNA"

        with pytest.raises(HTTPException) as exc:
            service.get_brand("NADA")
        assert exc.value.status_code == 404

    def test_update_contract(self, db_session, sample_brand, make_brand):
        make_brand(tag="SOLR", name="Sol Rojo")
        service = BrandService(db_session)

        updated = service.update_brand(sample_brand.id, BrandUpdate(contract_type=ContractType.FLOOR))
        assert updated.contract_type == ContractType.FLOOR

        with pytest.raises(HTTPException) as exc:
            service.update_brand(sample_brand.id, BrandUpdate(tag="solr"))
        assert exc.value.status_code == 409

    def test_add_products_and_update_stock(self, db_session, sample_brand):
        service = BrandService(db_session)
        brand = service.add_products(sample_brand.id, [BrandProductCreate(key="ARETE", name="Arete")])
        assert "LUNA-ARETE" in [p.key for p in brand.products]

        product = service.update_stock("LUNA", StockUpdate(product_key="LUNA-ARETE", quantity=7))
        assert product.quantity == 7

        with pytest.raises(HTTPException) as exc:
            service.add_products(sample_brand.id, [BrandProductCreate(key="ARETE")])
        assert exc.value.status_code == 409

    def test_delete_brand_with_sales_is_rejected(self, db_session, sample_brand, user_id):
        SaleService(db_session).create_sale(SaleCreate(
            brand_tag="LUNA", product_key="LUNA-P001", user_id=user_id,
            sale_date=date(2025, 4, 2), amount=Decimal("10"), amount_cash=Decimal("10")
        ))
        with pytest.raises(HTTPException) as exc:
            BrandService(db_session).delete_brand(sample_brand.id)
        assert exc.value.status_code == 409

    def test_delete_brand(self, db_session, sample_brand):
        service = BrandService(db_session)
        service.delete_brand(sample_brand.id)
        assert service.get_all_brands()["total"] == 0


class TestBrandEndpoints:

    def test_create_and_fetch(self, client):
        response = client.post("/brands/", json={
            "name": "Luna Accesorios",
            "tag": "luna",
            "contract_type": "Porcentaje",
            "contract_value": "25",
            "products": [{"key": "P001", "name": "Collar", "price": "300", "quantity": 3}]
        })
        assert response.status_code == 201
        assert response.json()["tag"] == "LUNA"

        fetched = client.get("/brands/LUNA").json()
        assert fetched["contract_type"] == "Porcentaje"
        assert fetched["products"][0]["key"] == "LUNA-P001"

        assert client.get("/brands/").json()["total"] == 1


class TestBrandContractUpdate:

    def test_switch_to_percentage_checks_stored_value(self, db_session, make_brand):
        brand = make_brand(contract_type=ContractType.FIXED_SHARE, contract_value=Decimal("150"))
        service = BrandService(db_session)

        with pytest.raises(HTTPException) as exc:
            service.update_brand(brand.id, BrandUpdate(contract_type=ContractType.PERCENTAGE))
        assert exc.value.status_code == 400

        db_session.refresh(brand)
        assert brand.contract_type == ContractType.FIXED_SHARE

    def test_value_above_hundred_on_percentage_brand(self, db_session, sample_brand):
        with pytest.raises(HTTPException) as exc:
            BrandService(db_session).update_brand(sample_brand.id, BrandUpdate(contract_value=Decimal("150")))
        assert exc.value.status_code == 400

    def test_sales_after_contract_update_never_give_negative_shares(self, db_session, make_brand, user_id):
        brand = make_brand(contract_type=ContractType.FIXED_SHARE, contract_value=Decimal("0"))
        BrandService(db_session).update_brand(
            brand.id, BrandUpdate(contract_type=ContractType.PERCENTAGE, contract_value=Decimal("100"))
        )
        SaleService(db_session).create_sale(SaleCreate(
            brand_tag="LUNA", product_key="LUNA-P001", user_id=user_id,
            sale_date=date(2025, 3, 3), amount=Decimal("100.00"), amount_cash=Decimal("100.00")
        ))

        result = CorteService(db_session).preview_corte(
            CorteGenerate(start_date=date(2025, 3, 1), end_date=date(2025, 3, 31), generated_by=user_id)
        )
        assert result.total_brand_share == Decimal("0.00")
        assert result.total_store_share == Decimal("100.00")

    def test_tag_change_updates_product_keys(self, db_session, sample_brand):
        brand = BrandService(db_session).update_brand(sample_brand.id, BrandUpdate(tag="lunr"))
        assert brand.tag == "LUNR"
        assert [p.key for p in brand.products] == ["LUNR-P001"]


class TestBrandProducts:

    def test_update_product(self, db_session, sample_brand):
        product_id = sample_brand.products[0].id
        product = BrandService(db_session).update_product(
            sample_brand.id, product_id,
            BrandProductUpdate(key="COLLAR", name="Collar dorado", price=Decimal("120.50"),
                               received_at=date(2025, 2, 1))
        )
        assert product.key == "LUNA-COLLAR"
        assert product.name == "Collar dorado"
        assert product.price == Decimal("120.50")
        assert product.quantity == 10

    def test_update_product_duplicate_key(self, db_session, sample_brand):
        service = BrandService(db_session)
        product_id = sample_brand.products[0].id
        service.add_products(sample_brand.id, [BrandProductCreate(key="ARETE")])

        with pytest.raises(HTTPException) as exc:
            service.update_product(sample_brand.id, product_id, BrandProductUpdate(key="LUNA-ARETE"))
        assert exc.value.status_code == 409

    def test_update_missing_product(self, db_session, sample_brand):
        with pytest.raises(HTTPException) as exc:
            BrandService(db_session).update_product(sample_brand.id, uuid4(), BrandProductUpdate(quantity=1))
        assert exc.value.status_code == 404

    def test_delete_product_keeps_sale_snapshot(self, db_session, sample_brand, user_id):
        sale = SaleService(db_session).create_sale(SaleCreate(
            brand_tag="LUNA", product_key="LUNA-P001", user_id=user_id,
            sale_date=date(2025, 4, 2), amount=Decimal("10"), amount_cash=Decimal("10")
        ))
        service = BrandService(db_session)
        service.delete_product(sample_brand.id, sample_brand.products[0].id)

        assert service.get_brand_by_id(sample_brand.id).products == []
        db_session.refresh(sale)
        assert sale.product_key == "LUNA-P001"

    def test_search_products(self, db_session, sample_brand, make_brand):
        make_brand(tag="SOLR", name="Sol Rojo")
        service = BrandService(db_session)

        by_key = service.search_products("luna-p0")
        assert by_key["count"] == 1
        assert by_key["results"][0]["brand_tag"] == "LUNA"

        by_name = service.search_products("PRODUCTO")
        assert [r["brand_name"] for r in by_name["results"]] == ["Luna Accesorios", "Sol Rojo"]

        with pytest.raises(HTTPException) as exc:
            service.search_products("p")
        assert exc.value.status_code == 400

    def test_list_filters_by_active_flag(self, db_session, sample_brand, make_brand):
        inactive = make_brand(tag="SOLR", name="Sol Rojo")
        service = BrandService(db_session)
        service.update_brand(inactive.id, BrandUpdate(is_active=False))

        assert service.get_all_brands(is_active=True)["total"] == 1
        assert service.get_all_brands()["total"] == 2


class TestProductEndpoints:

    def test_edit_search_and_delete(self, client, sample_brand):
        brand_id = str(sample_brand.id)
        product_id = str(sample_brand.products[0].id)

        response = client.put(f"/brands/{brand_id}/products/{product_id}", json={"name": "Pulsera"})
        assert response.status_code == 200
        assert response.json()["name"] == "Pulsera"

        found = client.get("/brands/search/products", params={"q": "pulse"}).json()
        assert found["count"] == 1
        assert found["results"][0]["brand_name"] == "Luna Accesorios"

        assert client.get("/brands/search/products", params={"q": "x"}).status_code == 400

        response = client.delete(f"/brands/{brand_id}/products/{product_id}")
        assert response.status_code == 204
        assert client.get("/brands/LUNA").json()["products"] == []

    def test_patch_with_null_name_returns_422(self, client, sample_brand):
        response = client.patch(f"/brands/{sample_brand.id}", json={"name": None})
        assert response.status_code == 422
