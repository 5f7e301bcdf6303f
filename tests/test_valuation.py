"""
Unit tests for the valuation engine and its strategies.
"""

from datetime import date, timedelta

import pytest

from fakes import FakePriceSource, FakeRateSource
from models import AssetType
from services.exceptions import UnknownAssetTypeError
from services.valuation import (
    InterestDrivenValuation,
    PriceDrivenValuation,
    ValuationEngine,
    strategy_class_for,
)


@pytest.fixture
def etf_ledger(make_asset, make_transaction):
    asset = make_asset(1, "World ETF", "CW8", "etf")
    transactions = [
        make_transaction(1, "buy", 10, 90, date(2024, 1, 1)),
        make_transaction(1, "sell", 4, 100, date(2024, 1, 10)),
    ]
    return asset, transactions


def test_etf_is_valued_at_current_price(etf_ledger, as_of):
    asset, transactions = etf_ledger
    engine = ValuationEngine(FakePriceSource({"CW8": 100.0}), FakeRateSource())

    enriched = engine.enrich_asset(asset, transactions, as_of)

    assert enriched.current_price == 100.0
    assert enriched.total_quantity == pytest.approx(6)
    assert enriched.total_value == pytest.approx(600)
    assert enriched.total_cost == pytest.approx(500)
    assert enriched.average_price == pytest.approx(83.33, abs=0.01)
    assert enriched.profit_loss == pytest.approx(100)
    assert enriched.profit_loss_percentage == pytest.approx(20)
    assert enriched.accrued_interest is None


def test_crypto_uses_the_price_driven_strategy(make_asset, make_transaction, as_of):
    asset = make_asset(2, "Bitcoin", "BTC", "crypto")
    transactions = [make_transaction(2, "buy", 0.5, 40000, date(2024, 1, 1))]
    prices = FakePriceSource({"BTC": 50000.0})

    enriched = ValuationEngine(prices, FakeRateSource()).enrich_asset(asset, transactions, as_of)

    assert enriched.total_value == pytest.approx(25000)
    assert enriched.profit_loss == pytest.approx(5000)
    assert prices.calls == ["BTC"]


def test_savings_is_valued_from_interest(make_asset, make_transaction, make_rate):
    start = date(2024, 1, 1)
    asset = make_asset(3, "Livret A", "LIVRETA", "savings")
    transactions = [make_transaction(3, "buy", 1000, 1, start)]
    rates = FakeRateSource({3: [make_rate(3, 3.65, start)]}, {3: 3.65})
    prices = FakePriceSource()

    enriched = ValuationEngine(prices, rates).enrich_asset(asset, transactions, start + timedelta(days=9))

    assert enriched.current_price == 1.0
    assert enriched.total_quantity == pytest.approx(1000)
    assert enriched.accrued_interest == pytest.approx(1.0)
    assert enriched.total_value == pytest.approx(1001.0)
    assert enriched.profit_loss == pytest.approx(1.0)
    assert enriched.profit_loss_percentage == pytest.approx(0.1)
    assert enriched.interest_rate == 3.65
    assert len(enriched.rate_history) == 1
    # No quote is ever requested for a savings asset
    assert prices.calls == []


def test_savings_without_rate_earns_nothing(make_asset, make_transaction, as_of):
    asset = make_asset(3, "Livret A", "LIVRETA", "savings")
    transactions = [make_transaction(3, "buy", 1000, 1, date(2024, 1, 1))]

    enriched = ValuationEngine(FakePriceSource(), FakeRateSource()).enrich_asset(asset, transactions, as_of)

    assert enriched.accrued_interest == 0.0
    assert enriched.total_value == pytest.approx(1000)
    assert enriched.interest_rate is None


def test_zero_price_is_tolerated(etf_ledger, as_of):
    asset, transactions = etf_ledger
    engine = ValuationEngine(FakePriceSource({}, stale=True), FakeRateSource())

    enriched = engine.enrich_asset(asset, transactions, as_of)

    assert enriched.current_price == 0.0
    assert enriched.total_value == 0.0
    assert enriched.profit_loss == pytest.approx(-500)
    assert enriched.profit_loss_percentage == pytest.approx(-100)
    assert enriched.is_price_stale is True


def test_asset_without_transactions(make_asset, as_of):
    asset = make_asset(1, "World ETF", "CW8", "etf")
    engine = ValuationEngine(FakePriceSource({"CW8": 100.0}), FakeRateSource())

    enriched = engine.enrich_asset(asset, [], as_of)

    assert enriched.total_value == 0.0
    assert enriched.average_price == 0.0
    assert enriched.profit_loss_percentage == 0.0


def test_unknown_asset_type_raises(make_asset, as_of):
    asset = make_asset(9, "Gold bar", "GOLD", "commodity")
    engine = ValuationEngine(FakePriceSource(), FakeRateSource())

    with pytest.raises(UnknownAssetTypeError) as exc_info:
        engine.enrich_asset(asset, [], as_of)

    assert exc_info.value.asset_type == "commodity"
    assert "Gold bar" in str(exc_info.value)


def test_unknown_type_fails_before_any_price_fetch(make_asset, etf_ledger, as_of):
    asset, transactions = etf_ledger
    prices = FakePriceSource({"CW8": 100.0})
    engine = ValuationEngine(prices, FakeRateSource())

    with pytest.raises(UnknownAssetTypeError):
        engine.enrich_assets([asset, make_asset(9, "Gold bar", "GOLD", "commodity")], transactions, as_of)

    assert prices.calls == []


def test_enrich_assets_keeps_input_order_and_filters_ledger(make_asset, make_transaction, as_of):
    assets = [
        make_asset(1, "World ETF", "CW8", "etf"),
        make_asset(2, "Bitcoin", "BTC", "crypto"),
        make_asset(3, "Emerging", "PAEEM", "etf"),
    ]
    transactions = [
        make_transaction(1, "buy", 2, 100, date(2024, 1, 1)),
        make_transaction(2, "buy", 1, 30000, date(2024, 1, 2)),
        make_transaction(3, "buy", 5, 20, date(2024, 1, 3)),
    ]
    prices = FakePriceSource({"CW8": 110.0, "BTC": 60000.0, "PAEEM": 25.0})

    enriched = ValuationEngine(prices, FakeRateSource(), max_workers=3).enrich_assets(assets, transactions, as_of)

    assert [a.symbol for a in enriched] == ["CW8", "BTC", "PAEEM"]
    assert [a.total_value for a in enriched] == pytest.approx([220.0, 60000.0, 125.0])


def test_enrich_assets_with_no_assets():
    engine = ValuationEngine(FakePriceSource(), FakeRateSource())

    assert engine.enrich_assets([], []) == []


def test_strategy_classes():
    assert strategy_class_for("etf") is PriceDrivenValuation
    assert strategy_class_for("crypto") is PriceDrivenValuation
    assert strategy_class_for("savings") is InterestDrivenValuation
    with pytest.raises(UnknownAssetTypeError):
        strategy_class_for("stock")


def test_engine_dispatch_follows_the_strategy_classes():
    engine = ValuationEngine(FakePriceSource(), FakeRateSource())

    for asset_type in AssetType:
        assert type(engine.strategy_for(asset_type.value)) is strategy_class_for(asset_type.value)
    assert engine.strategy_for("etf") is engine.strategy_for("crypto")


def test_price_driven_value_series_on_past_days(etf_ledger, as_of):
    asset, transactions = etf_ledger
    engine = ValuationEngine(FakePriceSource({"CW8": 100.0}), FakeRateSource())
    enriched = engine.enrich_asset(asset, transactions, as_of)

    values = PriceDrivenValuation.value_series(
        enriched, transactions, [date(2023, 12, 31), date(2024, 1, 5), date(2024, 1, 10)]
    )

    assert values == pytest.approx([0.0, 1000, 600])


def test_transactions_after_as_of_are_ignored(etf_ledger, make_transaction):
    asset, transactions = etf_ledger
    later = make_transaction(1, "buy", 100, 95, date(2024, 3, 1))
    engine = ValuationEngine(FakePriceSource({"CW8": 100.0}), FakeRateSource())

    enriched = engine.enrich_asset(asset, transactions + [later], date(2024, 2, 1))

    assert enriched.total_quantity == pytest.approx(6)
    assert enriched.total_cost == pytest.approx(500)


def test_savings_rate_is_taken_on_the_valuation_day(make_asset, make_transaction, make_rate):
    asset = make_asset(3, "Livret A", "LIVRETA", "savings")
    transactions = [make_transaction(3, "buy", 1000, 1, date(2023, 1, 1))]
    history = [
        make_rate(3, 3.0, date(2023, 1, 1), date(2024, 2, 1)),
        make_rate(3, 2.4, date(2024, 2, 1)),
    ]
    engine = ValuationEngine(FakePriceSource(), FakeRateSource({3: history}, {3: 2.4}))

    assert engine.enrich_asset(asset, transactions, date(2023, 6, 30)).interest_rate == 3.0
    assert engine.enrich_asset(asset, transactions, date(2024, 6, 30)).interest_rate == 2.4
