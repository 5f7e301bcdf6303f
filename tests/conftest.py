"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Model factories (unsaved SQLModel instances)
- Settings isolated from the local .env
- Database session fixtures (in-memory SQLite)
"""

from datetime import date
from typing import Iterator, Optional

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import db_engine
from config import Settings
from models import Asset, InterestRateHistory, Transaction

AS_OF = date(2024, 6, 30)


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def make_asset():
    """Build an unsaved Asset."""
    def _make(asset_id: int, name: str, symbol: str, asset_type: str = "etf") -> Asset:
        return Asset(id=asset_id, name=name, symbol=symbol, asset_type=asset_type)
    return _make


@pytest.fixture
def make_transaction():
    """Build an unsaved Transaction; total_amount defaults to quantity x price."""
    counter = {"next_id": 1}

    def _make(
        asset_id: int,
        transaction_type: str,
        quantity: float,
        price_per_unit: float,
        transaction_date: date,
        total_amount: Optional[float] = None
    ) -> Transaction:
        tx = Transaction(
            id=counter["next_id"],
            asset_id=asset_id,
            transaction_type=transaction_type,
            quantity=quantity,
            price_per_unit=price_per_unit,
            total_amount=quantity * price_per_unit if total_amount is None else total_amount,
            transaction_date=transaction_date,
        )
        counter["next_id"] += 1
        return tx
    return _make


@pytest.fixture
def make_rate():
    """Build an unsaved InterestRateHistory interval."""
    def _make(asset_id: int, rate: float, start_date: date, end_date: Optional[date] = None) -> InterestRateHistory:
        return InterestRateHistory(asset_id=asset_id, rate=rate, start_date=start_date, end_date=end_date)
    return _make


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        dashboard_password="hunter2",
        reporting_currency="EUR",
        reporting_timezone="Europe/Paris",
        max_workers=2,
    )


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine, installed as the application engine for the test."""
    test_engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    previous = db_engine._engine
    db_engine._engine = test_engine
    yield test_engine
    db_engine._engine = previous
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(scope="function")
def session(engine) -> Iterator[Session]:
    """Database session bound to the in-memory engine."""
    with Session(engine) as sess:
        yield sess
