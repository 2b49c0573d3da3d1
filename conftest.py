"""
Fixtures compartidas para los tests de los módulos

Los tests corren contra SQLite en memoria; la variable DATABASE_URL se fija
antes de importar la configuración para que el engine de la aplicación no
apunte a PostgreSQL.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")

import pytest
from decimal import Decimal
from uuid import uuid4
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database.database import Base, get_db
from app.modules.brands.models import Brand, BrandProduct, ContractType
import app.modules.sales.models
import app.modules.outflows.models
import app.modules.cortes.models
from app.main import app as fastapi_app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def make_brand(db_session):
    """Crea marcas con un producto consignado"""
    def _make_brand(tag="LUNA", name="Luna Accesorios", contract_type=ContractType.PERCENTAGE,
                    contract_value=Decimal("20"), quantity=10, price=Decimal("1000.00")):
        brand = Brand(
            tag=tag,
            name=name,
            contract_type=contract_type,
            contract_value=contract_value
        )
        brand.products = [
            BrandProduct(
                key=f"{tag}-P001",
                name=f"Producto {tag}",
                price=price,
                quantity=quantity
            )
        ]
        db_session.add(brand)
        db_session.commit()
        db_session.refresh(brand)
        return brand

    return _make_brand


@pytest.fixture
def sample_brand(make_brand):
    return make_brand()
