"""
Tests para el módulo de Ventas

- Validación del desglose por método de pago
- Copia del contrato de la marca y sobrescritura explícita
- Folio YYMM + secuencia por mes de la venta
- Existencia del producto
"""

import pytest
from decimal import Decimal
from datetime import date
from fastapi import HTTPException
from pydantic import ValidationError

from app.modules.brands.models import BrandProduct, ContractType
from app.modules.sales.models import Sale, DiscountType
from app.modules.sales.schemas import SaleCreate
from app.modules.sales.service import SaleService


def sale_payload(brand, user_id, **overrides):
    data = {
        "brand_tag": brand.tag,
        "product_key": brand.products[0].key,
        "user_id": user_id,
        "sale_date": date(2025, 5, 12),
        "amount": Decimal("450.00"),
        "amount_cash": Decimal("450.00"),
    }
    data.update(overrides)
    return SaleCreate(**data)


class TestSaleSchema:

    def test_payment_split_must_match_amount(self, user_id):
        with pytest.raises(ValidationError):
            SaleCreate(
                brand_tag="LUNA", product_key="LUNA-P001", user_id=user_id,
                sale_date=date(2025, 5, 1), amount=Decimal("100"),
                amount_cash=Decimal("50"), amount_card=Decimal("40")
            )

    def test_mixed_payment_is_accepted(self, user_id):
        sale = SaleCreate(
            brand_tag=" luna ", product_key="LUNA-P001", user_id=user_id,
            sale_date=date(2025, 5, 1), amount=Decimal("100"),
            amount_cash=Decimal("50"), amount_card=Decimal("30"), amount_transfer=Decimal("20")
        )
        assert sale.brand_tag == "LUNA"

    def test_amounts_are_limited_to_cents(self, user_id):
        with pytest.raises(ValidationError):
            SaleCreate(
                brand_tag="LUNA", product_key="LUNA-P001", user_id=user_id,
                sale_date=date(2025, 5, 1), amount=Decimal("10.005"), amount_cash=Decimal("10.005")
            )

    def test_negative_payment_is_rejected(self, user_id):
        with pytest.raises(ValidationError):
            SaleCreate(
                brand_tag="LUNA", product_key="LUNA-P001", user_id=user_id,
                sale_date=date(2025, 5, 1), amount=Decimal("100"),
                amount_cash=Decimal("120"), amount_card=Decimal("-20")
            )


class TestSaleService:

    def test_create_sale_snapshots_brand_contract(self, db_session, sample_brand, user_id):
        sale = SaleService(db_session).create_sale(sale_payload(sample_brand, user_id))

        assert sale.sale_number == "25050001"
        assert sale.brand_id == sample_brand.id
        assert sale.brand_name == "Luna Accesorios"
        assert sale.contract_type == ContractType.PERCENTAGE
        assert sale.contract_value == Decimal("20")
        assert sale.original_price == Decimal("450.00")
        assert sale.discount_type == DiscountType.NONE

        product = db_session.query(BrandProduct).filter(BrandProduct.key == "LUNA-P001").one()
        assert product.quantity == 9

    def test_contract_override(self, db_session, sample_brand, user_id):
        sale = SaleService(db_session).create_sale(sale_payload(
            sample_brand, user_id,
            contract_type=ContractType.HOUSE_BRAND, contract_value=Decimal("0")
        ))
        assert sale.contract_type == ContractType.HOUSE_BRAND
        assert sale.contract_value == Decimal("0")

    def test_contract_change_does_not_touch_recorded_sales(self, db_session, sample_brand, user_id):
        sale = SaleService(db_session).create_sale(sale_payload(sample_brand, user_id))
        sample_brand.contract_type = ContractType.FLOOR
        db_session.commit()

        db_session.refresh(sale)
        assert sale.contract_type == ContractType.PERCENTAGE

    def test_sale_numbers_follow_sale_month(self, db_session, sample_brand, user_id):
        service = SaleService(db_session)
        first = service.create_sale(sale_payload(sample_brand, user_id))
        second = service.create_sale(sale_payload(sample_brand, user_id, sale_date=date(2025, 5, 30)))
        june = service.create_sale(sale_payload(sample_brand, user_id, sale_date=date(2025, 6, 1)))

        assert (first.sale_number, second.sale_number, june.sale_number) == ("25050001", "25050002", "25060001")
        assert service.generate_sale_number(date(2025, 5, 2)) == "25050003"

    def test_out_of_stock(self, db_session, make_brand, user_id):
        brand = make_brand(tag="SOLR", name="Sol Rojo", quantity=0)
        with pytest.raises(HTTPException) as exc:
            SaleService(db_session).create_sale(sale_payload(brand, user_id))
        assert exc.value.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_inactive_brand_cannot_sell(self, db_session, sample_brand, user_id):
        sample_brand.is_active = False
        db_session.commit()

        with pytest.raises(HTTPException) as exc:
            SaleService(db_session).create_sale(sale_payload(sample_brand, user_id))
        assert exc.value.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_stored_percentage_above_hundred_is_rejected(self, db_session, make_brand, user_id):
        brand = make_brand(contract_value=Decimal("150"))
        with pytest.raises(HTTPException) as exc:
            SaleService(db_session).create_sale(sale_payload(brand, user_id))
        assert exc.value.status_code == 400

    def test_unknown_brand_and_product(self, db_session, sample_brand, user_id):
        service = SaleService(db_session)
        with pytest.raises(HTTPException) as exc:
            service.create_sale(sale_payload(sample_brand, user_id, brand_tag="NADA"))
        assert exc.value.status_code == 404

        with pytest.raises(HTTPException) as exc:
            service.create_sale(sale_payload(sample_brand, user_id, product_key="LUNA-XXXX"))
        assert exc.value.status_code == 404

    def test_list_sales_by_range(self, db_session, sample_brand, user_id):
        service = SaleService(db_session)
        service.create_sale(sale_payload(sample_brand, user_id, sale_date=date(2025, 5, 1)))
        service.create_sale(sale_payload(sample_brand, user_id, sale_date=date(2025, 5, 20)))
        service.create_sale(sale_payload(sample_brand, user_id, sale_date=date(2025, 6, 2)))

        result = service.get_sales(date(2025, 5, 1), date(2025, 5, 31))
        assert result["total"] == 2
        assert result["sales"][0].sale_date == date(2025, 5, 20)

    def test_delete_sale(self, db_session, sample_brand, user_id):
        service = SaleService(db_session)
        sale = service.create_sale(sale_payload(sample_brand, user_id))
        service.delete_sale(sale.id)
        assert db_session.query(Sale).count() == 0


class TestSaleEndpoints:

    def test_create_and_list(self, client, sample_brand, user_id):
        response = client.post("/sales/", json={
            "brand_tag": "LUNA",
            "product_key": "LUNA-P001",
            "user_id": str(user_id),
            "sale_date": "2025-05-12",
            "amount": "300.00",
            "amount_card": "100.00",
            "amount_transfer": "200.00",
            "discount_type": "amount",
            "discount_amount": "50.00",
            "original_price": "350.00"
        })
        assert response.status_code == 201
        body = response.json()
        assert body["contract_type"] == "Porcentaje"
        assert body["discount_type"] == "amount"

        listed = client.get("/sales/", params={"start_date": "2025-05-01", "end_date": "2025-05-31"}).json()
        assert listed["total"] == 1

        next_number = client.get("/sales/next-number", params={"sale_date": "2025-05-20"}).json()
        assert next_number["sale_number"] == "25050002"

    def test_payment_mismatch_returns_422(self, client, sample_brand, user_id):
        response = client.post("/sales/", json={
            "brand_tag": "LUNA",
            "product_key": "LUNA-P001",
            "user_id": str(user_id),
            "sale_date": "2025-05-12",
            "amount": "300.00",
            "amount_cash": "100.00"
        })
        assert response.status_code == 422
