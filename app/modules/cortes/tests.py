"""
Tests para el módulo de Cortes

Cubren:
- Calculador puro: comisión, reparto por tipo de contrato, totales por marca
- Identificador de período y validación de fechas
- Servicio: un solo corte por período, candado sobre ventas y salidas
- Endpoints REST de generación y consulta
"""

import logging
import pytest
from decimal import Decimal
from uuid import uuid4
from datetime import date
from fastapi import HTTPException

from app.modules.brands.models import ContractType
from app.modules.cortes.calculator import (
    SettlementCalculator, compute_period_id, resolve_contract_type, split_net
)
from app.modules.cortes.exceptions import CorteValidationError, PeriodAlreadySettledError
from app.modules.cortes.models import Corte
from app.modules.cortes.schemas import SaleRecord, OutflowRecord, CorteGenerate
from app.modules.cortes.service import CorteService
from app.modules.outflows.models import Outflow
from app.modules.outflows.schemas import OutflowCreate
from app.modules.outflows.service import OutflowService
from app.modules.sales.schemas import SaleCreate
from app.modules.sales.service import SaleService


JAN_START = date(2025, 1, 1)
JAN_END = date(2025, 1, 31)


def make_record(amount, card="0", cash=None, transfer="0", contract="DCE", value="0",
                brand_id=None, brand_name="Luna"):
    amount = Decimal(str(amount)) if amount is not None else None
    card = Decimal(str(card))
    transfer = Decimal(str(transfer))
    if cash is None and amount is not None:
        cash = amount - card - transfer
    return SaleRecord(
        id=uuid4(),
        brand_id=brand_id,
        brand_name=brand_name,
        amount=amount,
        amount_cash=cash,
        amount_card=card,
        amount_transfer=transfer,
        contract_type=contract,
        contract_value=Decimal(str(value)),
        sale_date=JAN_START
    )


# ===== CALCULADOR =====

class TestSaleSplit:
    """Reparto de una venta entre marca y tienda"""

    def setup_method(self):
        self.calculator = SettlementCalculator()

    def test_percentage_with_card_payment(self):
        line = self.calculator.calculate_sale_line(
            make_record(1000, card=1000, contract="Porcentaje", value=20)
        )
        assert line.card_commission == Decimal("46.00")
        assert line.net_after_commission == Decimal("954.00")
        assert line.store_share == Decimal("190.80")
        assert line.brand_share == Decimal("763.20")

    def test_fixed_share_cash_payment(self):
        line = self.calculator.calculate_sale_line(make_record(500, contract="DCE"))
        assert line.card_commission == Decimal("0")
        assert line.brand_share == Decimal("500")
        assert line.store_share == Decimal("0")

    @pytest.mark.parametrize("contract,value", [
        ("DCE", "0"), ("Piso", "35"), ("Porcentaje", "17.5"), ("Porcentaje", "33"),
    ])
    def test_no_card_means_shares_add_up_to_amount(self, contract, value):
        line = self.calculator.calculate_sale_line(
            make_record("333.33", contract=contract, value=value)
        )
        assert line.card_commission == Decimal("0")
        assert line.brand_share + line.store_share == Decimal("333.33")

    @pytest.mark.parametrize("contract", ["DCE", "Piso"])
    def test_fixed_share_and_floor_never_pay_store(self, contract):
        line = self.calculator.calculate_sale_line(
            make_record("812.40", card="400", contract=contract, value="60")
        )
        assert line.store_share == Decimal("0")
        assert line.brand_share == line.net_after_commission

    def test_house_brand_both_sides_get_full_net(self):
        line = self.calculator.calculate_sale_line(
            make_record(200, card=100, contract="Estetica Unisex")
        )
        assert line.net_after_commission == Decimal("195.40")
        assert line.brand_share == line.store_share == Decimal("195.40")

    def test_percentage_split_sums_to_net(self):
        line = self.calculator.calculate_sale_line(
            make_record("99.99", card="99.99", contract="Porcentaje", value="33.3")
        )
        assert line.brand_share + line.store_share == line.net_after_commission

    def test_mixed_payment_only_card_pays_commission(self):
        line = self.calculator.calculate_sale_line(
            make_record(1000, card=250, transfer=250)
        )
        assert line.card_commission == Decimal("11.50")
        assert line.net_after_commission == Decimal("988.50")

    def test_missing_amount_counts_as_zero(self):
        record = SaleRecord(brand_name="Luna", contract_type="DCE")
        line = self.calculator.calculate_sale_line(record)
        assert line.amount == Decimal("0")
        assert line.brand_share == Decimal("0")

    def test_custom_commission_rate(self):
        calculator = SettlementCalculator(card_commission_rate=Decimal("0.035"))
        line = calculator.calculate_sale_line(make_record(1000, card=1000))
        assert line.card_commission == Decimal("35.00")


class TestContractResolution:

    def test_known_values_and_names(self):
        assert resolve_contract_type("Porcentaje") == ContractType.PERCENTAGE
        assert resolve_contract_type("Estetica Unisex") == ContractType.HOUSE_BRAND
        assert resolve_contract_type("FLOOR") == ContractType.FLOOR
        assert resolve_contract_type(ContractType.FIXED_SHARE) == ContractType.FIXED_SHARE

    def test_missing_defaults_to_fixed_share(self):
        assert resolve_contract_type(None) == ContractType.FIXED_SHARE
        assert resolve_contract_type("") == ContractType.FIXED_SHARE

    def test_unknown_is_logged_and_settled_as_fixed_share(self, caplog):
        with caplog.at_level(logging.WARNING, logger="app.modules.cortes.calculator"):
            resolved = resolve_contract_type("Consignacion")
        assert resolved == ContractType.FIXED_SHARE
        assert "Consignacion" in caplog.text

    def test_unknown_contract_sale_goes_entirely_to_brand(self):
        line = SettlementCalculator().calculate_sale_line(make_record(300, contract="Trueque", value=50))
        assert line.contract_type == ContractType.FIXED_SHARE
        assert line.brand_share == Decimal("300")
        assert line.store_share == Decimal("0")

    def test_split_net_percentage_rounds_store_share(self):
        brand, store = split_net(Decimal("10.01"), ContractType.PERCENTAGE, Decimal("50"))
        assert store == Decimal("5.01")
        assert brand == Decimal("5.00")


class TestPeriodId:

    def test_format_month_and_two_digit_year(self):
        assert compute_period_id(date(2025, 1, 15)) == "0125"
        assert compute_period_id(date(2030, 12, 1)) == "1230"
        assert compute_period_id(date(2009, 7, 31)) == "0709"

    def test_depends_only_on_start_date(self):
        calculator = SettlementCalculator()
        short = calculator.calculate([], [], date(2025, 3, 1), date(2025, 3, 2))
        long = calculator.calculate([make_record(100)], [], date(2025, 3, 1), date(2025, 4, 30))
        assert short.period_id == long.period_id == "0325"


class TestSettlementCalculation:

    def setup_method(self):
        self.calculator = SettlementCalculator()

    def test_empty_period_produces_zero_totals(self):
        result = self.calculator.calculate([], [], JAN_START, JAN_END)
        assert result.total_sales == Decimal("0")
        assert result.total_card_commission == Decimal("0")
        assert result.total_brand_share == Decimal("0")
        assert result.total_store_share == Decimal("0")
        assert result.total_outflows == Decimal("0")
        assert result.brand_breakdown == []
        assert result.sale_count == 0
        assert result.outflow_count == 0

    def test_end_before_start_is_rejected(self):
        with pytest.raises(CorteValidationError):
            self.calculator.calculate([], [], date(2025, 2, 1), date(2025, 1, 31))

    def test_missing_boundary_is_rejected(self):
        with pytest.raises(CorteValidationError):
            self.calculator.calculate([], [], None, JAN_END)

    def test_single_day_period_is_valid(self):
        result = self.calculator.calculate([make_record(10)], [], JAN_START, JAN_START)
        assert result.sale_count == 1

    def test_totals_and_breakdown(self):
        luna, sol = uuid4(), uuid4()
        sales = [
            make_record(1000, card=1000, contract="Porcentaje", value=20, brand_id=luna, brand_name="Luna"),
            make_record(500, brand_id=sol, brand_name="Sol"),
            make_record(250, card=100, contract="Porcentaje", value=20, brand_id=luna, brand_name="Luna"),
        ]
        outflows = [
            OutflowRecord(id=uuid4(), amount=Decimal("120.50")),
            OutflowRecord(id=uuid4(), amount=None),
        ]
        result = self.calculator.calculate(sales, outflows, JAN_START, JAN_END, uuid4())

        assert result.total_sales == Decimal("1750.00")
        assert result.total_card_commission == Decimal("50.60")
        assert result.total_outflows == Decimal("120.50")
        assert result.sale_count == 3
        assert result.outflow_count == 2
        assert len(result.outflow_ids) == 2

        assert [b.brand_name for b in result.brand_breakdown] == ["Luna", "Sol"]
        luna_entry = result.brand_breakdown[0]
        assert luna_entry.sale_count == 2
        # 763.20 + (250 - 4.60) * 0.8 = 763.20 + 196.32
        assert luna_entry.brand_total == Decimal("959.52")
        assert result.brand_breakdown[1].brand_total == Decimal("500")

    def test_brand_totals_roll_up_exactly(self):
        brands = [(uuid4(), "Luna"), (uuid4(), "Sol"), (uuid4(), "Mar")]
        contracts = [("Porcentaje", "17.5"), ("DCE", "0"), ("Estetica Unisex", "0"), ("Piso", "10")]
        sales = []
        for i in range(60):
            brand_id, name = brands[i % 3]
            contract, value = contracts[i % 4]
            amount = Decimal("13.37") * (i + 1)
            card = (amount / 3).quantize(Decimal("0.01"))
            sales.append(make_record(amount, card=card, contract=contract, value=value,
                                     brand_id=brand_id, brand_name=name))

        result = self.calculator.calculate(sales, [], JAN_START, JAN_END)

        assert sum(b.brand_total for b in result.brand_breakdown) == result.total_brand_share
        assert sum(b.sale_count for b in result.brand_breakdown) == result.sale_count
        assert sum(l.amount for l in result.lines) == result.total_sales

    def test_brands_keyed_by_id_not_display_name(self):
        first, second = uuid4(), uuid4()
        sales = [
            make_record(100, brand_id=first, brand_name="Luna"),
            make_record(100, brand_id=second, brand_name="Luna"),
            make_record(100, brand_id=first, brand_name="Luna Nueva"),
        ]
        result = self.calculator.calculate(sales, [], JAN_START, JAN_END)

        assert len(result.brand_breakdown) == 2
        assert result.brand_breakdown[0].brand_id == first
        assert result.brand_breakdown[0].sale_count == 2

    def test_brand_without_id_or_name(self):
        record = SaleRecord(amount=Decimal("10"), contract_type="DCE")
        result = self.calculator.calculate([record], [], JAN_START, JAN_END)
        assert result.brand_breakdown[0].brand_name == "Sin Marca"

    def test_last_seen_contract_wins(self, caplog):
        brand_id = uuid4()
        sales = [
            make_record(100, contract="Porcentaje", value=20, brand_id=brand_id),
            make_record(100, contract="Piso", brand_id=brand_id),
        ]
        with caplog.at_level(logging.WARNING, logger="app.modules.cortes.calculator"):
            result = self.calculator.calculate(sales, [], JAN_START, JAN_END)

        entry = result.brand_breakdown[0]
        assert entry.contract_type == ContractType.FLOOR
        assert entry.brand_total == Decimal("180.00")
        assert "changed contract" in caplog.text

    def test_calculation_is_deterministic(self):
        sales = [make_record(1000, card=1000, contract="Porcentaje", value=20, brand_id=uuid4())]
        outflows = [OutflowRecord(id=uuid4(), amount=Decimal("50"))]
        generated_by = uuid4()

        first = self.calculator.calculate(sales, outflows, JAN_START, JAN_END, generated_by)
        second = self.calculator.calculate(sales, outflows, JAN_START, JAN_END, generated_by)
        assert first.model_dump_json() == second.model_dump_json()

    def test_inputs_are_not_mutated(self):
        record = make_record(1000, card=1000, contract="Porcentaje", value=20)
        before = record.model_dump()
        self.calculator.calculate([record], [], JAN_START, JAN_END)
        assert record.model_dump() == before


# ===== SERVICIO =====

def record_sale(db_session, brand, user_id, sale_date, amount="1000.00", card="0"):
    amount, card = Decimal(amount), Decimal(card)
    return SaleService(db_session).create_sale(SaleCreate(
        brand_tag=brand.tag,
        product_key=brand.products[0].key,
        user_id=user_id,
        sale_date=sale_date,
        amount=amount,
        amount_card=card,
        amount_cash=amount - card
    ))


class TestCorteService:

    def test_generate_persists_totals_and_references(self, db_session, sample_brand, user_id):
        record_sale(db_session, sample_brand, user_id, date(2025, 1, 10), card="1000.00")
        record_sale(db_session, sample_brand, user_id, date(2025, 2, 3))
        OutflowService(db_session).create_outflow(OutflowCreate(
            amount=Decimal("80"), concept="Limpieza", payment_label="Efectivo",
            outflow_date=date(2025, 1, 20), user_id=user_id
        ))

        corte = CorteService(db_session).generate_corte(
            CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id)
        )

        assert corte.period_id == "0125"
        assert corte.sale_count == 1
        assert corte.outflow_count == 1
        assert corte.total_sales == Decimal("1000.00")
        assert corte.total_card_commission == Decimal("46.00")
        assert corte.total_store_share == Decimal("190.80")
        assert corte.total_brand_share == Decimal("763.20")
        assert corte.total_outflows == Decimal("80.00")
        assert len(corte.brands) == 1
        assert corte.brands[0].brand_id == sample_brand.id
        assert corte.sales[0].store_share == Decimal("190.80")
        assert corte.outflows[0].concept == "Limpieza"

    def test_generate_empty_period(self, db_session, user_id):
        corte = CorteService(db_session).generate_corte(
            CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id)
        )
        assert corte.total_sales == Decimal("0")
        assert corte.brands == []

    def test_invalid_range_is_rejected_without_persisting(self, db_session, user_id):
        with pytest.raises(HTTPException) as exc:
            CorteService(db_session).generate_corte(
                CorteGenerate(start_date=JAN_END, end_date=JAN_START, generated_by=user_id)
            )
        assert exc.value.status_code == 400
        assert db_session.query(Corte).count() == 0

    def test_duplicate_period_is_rejected_and_original_untouched(self, db_session, sample_brand, user_id):
        record_sale(db_session, sample_brand, user_id, date(2025, 1, 10))
        service = CorteService(db_session)
        original = service.generate_corte(
            CorteGenerate(start_date=JAN_START, end_date=date(2025, 1, 15), generated_by=user_id)
        )
        original_id, original_total = original.id, original.total_sales

        with pytest.raises(HTTPException) as exc:
            service.generate_corte(
                CorteGenerate(start_date=date(2025, 1, 16), end_date=JAN_END, generated_by=uuid4())
            )
        assert exc.value.status_code == 409

        stored = db_session.query(Corte).all()
        assert len(stored) == 1
        assert stored[0].id == original_id
        assert stored[0].total_sales == original_total

    def test_overlapping_range_is_rejected(self, db_session, user_id):
        service = CorteService(db_session)
        service.generate_corte(CorteGenerate(start_date=date(2025, 1, 15), end_date=date(2025, 2, 14),
                                             generated_by=user_id))
        with pytest.raises(HTTPException) as exc:
            service.generate_corte(CorteGenerate(start_date=date(2025, 2, 1), end_date=date(2025, 2, 28),
                                                 generated_by=user_id))
        assert exc.value.status_code == 409

    def test_concurrent_write_loses_on_unique_period(self, db_session, user_id, monkeypatch):
        service = CorteService(db_session)
        service.generate_corte(CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id))

        # Simula a un segundo proceso que pasó la verificación previa antes del commit del primero
        monkeypatch.setattr(service, "_check_period_available", lambda *args: None)
        with pytest.raises(HTTPException) as exc:
            service.generate_corte(CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=uuid4()))

        assert exc.value.status_code == 409
        assert db_session.query(Corte).count() == 1

    def test_ensure_period_open(self, db_session, user_id):
        service = CorteService(db_session)
        service.generate_corte(CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id))

        service.ensure_period_open(date(2025, 2, 1))
        with pytest.raises(PeriodAlreadySettledError) as exc:
            service.ensure_period_open(date(2025, 1, 31))
        assert exc.value.period_id == "0125"

    def test_sales_and_outflows_rejected_in_settled_period(self, db_session, sample_brand, user_id):
        CorteService(db_session).generate_corte(
            CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id)
        )

        with pytest.raises(HTTPException) as exc:
            record_sale(db_session, sample_brand, user_id, date(2025, 1, 20))
        assert exc.value.status_code == 409

        with pytest.raises(HTTPException) as exc:
            OutflowService(db_session).create_outflow(OutflowCreate(
                amount=Decimal("10"), concept="Papelería", payment_label="Efectivo",
                outflow_date=JAN_END, user_id=user_id
            ))
        assert exc.value.status_code == 409
        assert db_session.query(Outflow).count() == 0

        sale = record_sale(db_session, sample_brand, user_id, date(2025, 2, 1))
        assert sale.sale_number == "25020001"

    def test_settled_sales_cannot_be_deleted(self, db_session, sample_brand, user_id):
        sale = record_sale(db_session, sample_brand, user_id, date(2025, 1, 5))
        CorteService(db_session).generate_corte(
            CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id)
        )
        with pytest.raises(HTTPException) as exc:
            SaleService(db_session).delete_sale(sale.id)
        assert exc.value.status_code == 409

    def test_delete_corte_reopens_period(self, db_session, sample_brand, user_id):
        service = CorteService(db_session)
        corte = service.generate_corte(CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id))

        service.delete_corte(corte.id)
        assert db_session.query(Corte).count() == 0

        record_sale(db_session, sample_brand, user_id, date(2025, 1, 20))
        regenerated = service.generate_corte(
            CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id)
        )
        assert regenerated.period_id == "0125"
        assert regenerated.sale_count == 1

    def test_get_missing_corte(self, db_session):
        with pytest.raises(HTTPException) as exc:
            CorteService(db_session).get_corte(uuid4())
        assert exc.value.status_code == 404

    def test_preview_does_not_persist(self, db_session, sample_brand, user_id):
        record_sale(db_session, sample_brand, user_id, date(2025, 1, 10), card="1000.00")
        result = CorteService(db_session).preview_corte(
            CorteGenerate(start_date=JAN_START, end_date=JAN_END, generated_by=user_id)
        )
        assert result.total_store_share == Decimal("190.80")
        assert db_session.query(Corte).count() == 0


# ===== ENDPOINTS =====

class TestCorteEndpoints:

    def test_generate_and_read_back(self, client, sample_brand, user_id):
        response = client.post("/sales/", json={
            "brand_tag": "luna",
            "product_key": "LUNA-P001",
            "user_id": str(user_id),
            "sale_date": "2025-01-10",
            "amount": "1000.00",
            "amount_card": "1000.00"
        })
        assert response.status_code == 201

        payload = {"start_date": "2025-01-01", "end_date": "2025-01-31", "generated_by": str(user_id)}
        response = client.post("/cortes/generate", json=payload)
        assert response.status_code == 201
        corte = response.json()
        assert corte["period_id"] == "0125"
        assert Decimal(corte["total_brand_share"]) == Decimal("763.20")
        assert corte["brands"][0]["brand_name"] == "Luna Accesorios"
        assert corte["brands"][0]["contract_type"] == "Porcentaje"

        detail = client.get(f"/cortes/{corte['id']}").json()
        assert detail["sales"][0]["sale_number"] == "25010001"
        assert Decimal(detail["sales"][0]["card_commission"]) == Decimal("46.00")

        assert client.get("/cortes/period/0125").json()["id"] == corte["id"]
        assert client.get("/cortes/").json()["total"] == 1

        conflict = client.post("/cortes/generate", json=payload)
        assert conflict.status_code == 409
        assert client.get("/cortes/").json()["total"] == 1

    def test_preview_endpoint(self, client, user_id):
        response = client.post("/cortes/preview", json={
            "start_date": "2025-03-01", "end_date": "2025-03-31", "generated_by": str(user_id)
        })
        assert response.status_code == 200
        assert response.json()["period_id"] == "0325"
        assert response.json()["brand_breakdown"] == []

    def test_invalid_range_returns_400(self, client, user_id):
        response = client.post("/cortes/generate", json={
            "start_date": "2025-03-31", "end_date": "2025-03-01", "generated_by": str(user_id)
        })
        assert response.status_code == 400

    def test_delete_endpoint(self, client, user_id):
        corte = client.post("/cortes/generate", json={
            "start_date": "2025-03-01", "end_date": "2025-03-31", "generated_by": str(user_id)
        }).json()
        assert client.delete(f"/cortes/{corte['id']}").status_code == 204
        assert client.get(f"/cortes/{corte['id']}").status_code == 404
