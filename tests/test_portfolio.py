"""
Unit tests for portfolio aggregation.
"""

import math
from datetime import date

import pytest

from fakes import FakePriceSource, FakeRateSource
from services.portfolio import PortfolioService
from services.valuation import ValuationEngine


@pytest.fixture
def mixed_portfolio(make_asset, make_transaction, make_rate, as_of):
    """ETF, crypto, savings and a fully sold ETF, valued as of AS_OF."""
    assets = [
        make_asset(1, "World ETF", "CW8", "etf"),
        make_asset(2, "Bitcoin", "BTC", "crypto"),
        make_asset(3, "Livret A", "LIVRETA", "savings"),
        make_asset(4, "Old ETF", "OLD", "etf"),
    ]
    transactions = [
        make_transaction(1, "buy", 10, 90, date(2024, 1, 1)),
        make_transaction(1, "sell", 4, 100, date(2024, 1, 10)),
        make_transaction(2, "buy", 0.1, 30000, date(2024, 2, 1)),
        make_transaction(3, "buy", 1000, 1, as_of),
        make_transaction(4, "buy", 5, 10, date(2024, 3, 1)),
        make_transaction(4, "sell", 5, 12, date(2024, 4, 1)),
    ]
    rates = FakeRateSource({3: [make_rate(3, 3.0, date(2024, 1, 1))]}, {3: 3.0})
    prices = FakePriceSource({"CW8": 100.0, "BTC": 50000.0, "OLD": 15.0})

    enriched = ValuationEngine(prices, rates).enrich_assets(assets, transactions, as_of)
    return enriched, transactions


def test_portfolio_metrics(mixed_portfolio):
    enriched, transactions = mixed_portfolio

    metrics = PortfolioService.compute_portfolio_metrics(enriched, transactions)

    # 600 + 5000 + 1000 + 0
    assert metrics.total_value == pytest.approx(6600)
    # 500 + 3000 + 1000 + (50 - 60)
    assert metrics.total_invested == pytest.approx(4490)
    assert metrics.total_profit_loss == pytest.approx(2110)
    assert metrics.total_profit_loss_percentage == pytest.approx(2110 / 4490 * 100)


def test_total_invested_matches_position_costs(mixed_portfolio):
    enriched, transactions = mixed_portfolio

    metrics = PortfolioService.compute_portfolio_metrics(enriched, transactions)

    assert metrics.total_invested == pytest.approx(sum(a.total_cost for a in enriched))


def test_zero_investment_gives_zero_percentage(make_asset, as_of):
    enriched = ValuationEngine(FakePriceSource(), FakeRateSource()).enrich_assets(
        [make_asset(1, "World ETF", "CW8", "etf")], [], as_of
    )

    metrics = PortfolioService.compute_portfolio_metrics(enriched, [])

    assert metrics.total_value == 0.0
    assert metrics.total_invested == 0.0
    assert metrics.total_profit_loss == 0.0
    assert metrics.total_profit_loss_percentage == 0.0
    assert not math.isnan(metrics.total_profit_loss_percentage)


def test_empty_portfolio():
    metrics = PortfolioService.compute_portfolio_metrics([], [])

    assert metrics.total_value == 0.0
    assert metrics.total_profit_loss_percentage == 0.0


def test_categories_in_fixed_order(mixed_portfolio):
    enriched, transactions = mixed_portfolio

    categories = PortfolioService.group_by_category(enriched, transactions, 6600)

    assert [c.asset_type for c in categories] == ["etf", "crypto", "savings"]
    assert [c.name for c in categories] == ["ETFs & Funds", "Crypto", "Savings"]


def test_closed_positions_are_archived(mixed_portfolio):
    enriched, transactions = mixed_portfolio

    etfs = PortfolioService.group_by_category(enriched, transactions, 6600)[0]

    assert [item.symbol for item in etfs.active_items] == ["CW8"]
    assert [item.symbol for item in etfs.archived_items] == ["OLD"]
    # Archived assets still count in the subtotals
    assert etfs.total == pytest.approx(600)
    assert etfs.invested == pytest.approx(490)
    assert etfs.profit_loss == pytest.approx(110)
    assert etfs.profit_loss_percentage == pytest.approx(110 / 490 * 100)


def test_category_percentages(mixed_portfolio):
    enriched, transactions = mixed_portfolio

    categories = PortfolioService.group_by_category(enriched, transactions, 6600)

    assert [c.percentage for c in categories] == pytest.approx([
        600 / 6600 * 100, 5000 / 6600 * 100, 1000 / 6600 * 100
    ])
    assert sum(c.percentage for c in categories) == pytest.approx(100)
    assert categories[0].active_items[0].percentage == pytest.approx(600 / 6600 * 100)


def test_savings_items_carry_interest_fields(mixed_portfolio):
    enriched, transactions = mixed_portfolio

    categories = PortfolioService.group_by_category(enriched, transactions, 6600)
    savings_item = categories[2].active_items[0]
    etf_item = categories[0].active_items[0]

    assert savings_item.interest_rate == 3.0
    assert savings_item.accrued_interest == 0.0
    assert etf_item.interest_rate is None
    assert etf_item.accrued_interest is None


def test_float_noise_counts_as_closed(make_asset, make_transaction, as_of):
    asset = make_asset(2, "Bitcoin", "BTC", "crypto")
    transactions = [
        make_transaction(2, "buy", 0.1, 100, date(2024, 1, 1)),
        make_transaction(2, "buy", 0.2, 100, date(2024, 1, 2)),
        make_transaction(2, "sell", 0.3, 100, date(2024, 1, 3)),
    ]
    enriched = ValuationEngine(FakePriceSource({"BTC": 100.0}), FakeRateSource()).enrich_assets(
        [asset], transactions, as_of
    )

    crypto = PortfolioService.group_by_category(enriched, transactions, 0.0)[1]

    assert crypto.active_items == []
    assert len(crypto.archived_items) == 1


def test_empty_categories_with_zero_total():
    categories = PortfolioService.group_by_category([], [], 0.0)

    assert len(categories) == 3
    for category in categories:
        assert category.total == 0.0
        assert category.percentage == 0.0
        assert category.profit_loss_percentage == 0.0
        assert category.active_items == []
        assert category.archived_items == []


def test_top_holdings_skip_closed_positions(mixed_portfolio):
    enriched, _ = mixed_portfolio

    top = PortfolioService.top_holdings(enriched, limit=2)

    assert [a.symbol for a in top] == ["BTC", "LIVRETA"]


def test_negative_net_investment_keeps_the_percentage(make_asset, make_transaction, as_of):
    asset = make_asset(1, "World ETF", "CW8", "etf")
    transactions = [
        make_transaction(1, "buy", 10, 10, date(2024, 1, 1)),
        make_transaction(1, "sell", 5, 40, date(2024, 2, 1)),
    ]
    enriched = ValuationEngine(FakePriceSource({"CW8": 40.0}), FakeRateSource()).enrich_assets(
        [asset], transactions, as_of
    )

    metrics = PortfolioService.compute_portfolio_metrics(enriched, transactions)
    etfs = PortfolioService.group_by_category(enriched, transactions, metrics.total_value)[0]

    assert metrics.total_invested == pytest.approx(-100)
    assert metrics.total_profit_loss == pytest.approx(300)
    assert metrics.total_profit_loss_percentage == pytest.approx(-300)
    assert etfs.profit_loss_percentage == pytest.approx(-300)
    # Per asset, a non-positive cost basis yields 0
    assert enriched[0].profit_loss_percentage == 0.0
