"""
NestEgg - Streamlit Application
Household portfolio dashboard: ETFs, crypto and savings accounts.
"""

import streamlit as st
import logging
from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from models import AssetType, TransactionType
from repositories import AssetRepository, TransactionRepository, InterestRateRepository
from services import (
    ChartService,
    DashboardService,
    MarketDataService,
    PortfolioService,
    PriceCache,
    ServiceError,
    SlidingWindowRateLimiter,
    today,
)
from services.auth import verify_password

# Load environment variables
load_dotenv()

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="NestEgg - Household Portfolio",
    page_icon="🪺",
    layout="wide"
)

# Initialize database
init_db()


# ==================== SESSION STATE ====================
if "authenticated" not in st.session_state:
    st.session_state.authenticated = False


# ==================== PROCESS-WIDE RESOURCES ====================
@st.cache_resource
def get_market_data_service() -> MarketDataService:
    """One price cache and rate limiter for the whole process."""
    cache = PriceCache(ttl_seconds=settings.price_cache_ttl_seconds)
    limiter = SlidingWindowRateLimiter(
        max_calls=settings.price_rate_limit_calls,
        window_seconds=settings.price_rate_limit_window_seconds
    )
    return MarketDataService(cache=cache, limiter=limiter, settings=settings)


# ==================== HELPER FUNCTIONS ====================
def format_currency(value: float) -> str:
    return f"{value:,.2f} {settings.reporting_currency}"


def format_percentage(value: float) -> str:
    return f"{value:+.2f}%"


ASSET_TYPE_OPTIONS = {
    "ETF / Fund": AssetType.ETF.value,
    "Crypto": AssetType.CRYPTO.value,
    "Savings account": AssetType.SAVINGS.value,
}


# ==================== LOGIN ====================
def render_login():
    """Render the shared-password gate."""
    st.title("🪺 NestEgg")

    if not settings.is_password_configured:
        st.error("❌ Server configuration error: DASHBOARD_PASSWORD is not set.")
        st.stop()

    with st.form("login_form"):
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)

    if submitted:
        if verify_password(password, settings):
            st.session_state.authenticated = True
            st.rerun()
        else:
            st.error("❌ Invalid password")


# ==================== MAIN CONTENT ====================
def render_portfolio_summary(snapshot):
    """Render portfolio totals."""
    st.subheader("📊 Portfolio Summary")
    metrics = snapshot.metrics

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Value", format_currency(metrics.total_value))
    with col2:
        st.metric("Invested", format_currency(metrics.total_invested))
    with col3:
        st.metric("Profit / Loss", format_currency(metrics.total_profit_loss))
    with col4:
        st.metric("Performance", format_percentage(metrics.total_profit_loss_percentage))

    if snapshot.has_stale_prices:
        st.caption("⚠️ Some prices could not be refreshed; last known values are shown.")

    top = PortfolioService.top_holdings(snapshot.assets)
    if top:
        st.markdown("**Top holdings**")
        for asset in top:
            st.text(f"{asset.name} ({asset.symbol}): {format_currency(asset.total_value)}")


def render_category_item(item, is_savings: bool):
    """Render one asset line of a category."""
    col1, col2, col3 = st.columns([2, 2, 2])
    with col1:
        st.markdown(f"**{item.name}** ({item.symbol})")
        if is_savings and item.interest_rate is not None:
            st.caption(f"Rate: {item.interest_rate}%")
        st.caption(f"{item.percentage:.1f}% of portfolio")
    with col2:
        if is_savings:
            st.text(f"Balance: {format_currency(item.quantity)}")
            st.text(f"Interest: {format_currency(item.accrued_interest or 0.0)}")
        else:
            st.text(f"{item.quantity:,.4f} units @ {format_currency(item.current_price)}")
            st.text(f"Average cost: {format_currency(item.average_price)}")
    with col3:
        st.text(f"Value: {format_currency(item.value)}")
        st.text(f"P/L: {format_currency(item.profit_loss)} ({format_percentage(item.profit_loss_percentage)})")


def render_categories(snapshot):
    """Render one block per asset category."""
    st.subheader("🧺 Asset Allocation")

    for category in snapshot.categories:
        is_savings = category.asset_type == AssetType.SAVINGS
        header = (
            f"**{category.name}** - {format_currency(category.total)} "
            f"({category.percentage:.1f}% of total)"
        )
        with st.expander(header, expanded=bool(category.active_items)):
            m1, m2, m3 = st.columns(3)
            with m1:
                st.metric("Invested", format_currency(category.invested))
            with m2:
                st.metric("Profit / Loss", format_currency(category.profit_loss))
            with m3:
                st.metric("Performance", format_percentage(category.profit_loss_percentage))

            if not category.active_items and not category.archived_items:
                st.info("No assets in this category.")

            for item in category.active_items:
                render_category_item(item, is_savings)

            if category.archived_items:
                st.markdown(f"*Archived assets ({len(category.archived_items)})*")
                for item in category.archived_items:
                    render_category_item(item, is_savings)


def render_performance_chart(snapshot):
    """Render the day-by-day valuation chart."""
    st.subheader("📈 Portfolio History")
    st.caption("Past holdings are valued at today's prices.")

    frame = ChartService.time_series_frame(snapshot.chart, settings.chart_date_format)
    if frame.empty:
        st.info("No transactions yet.")
        return
    st.area_chart(frame)


def render_dashboard():
    """Build and render the dashboard; any failure aborts the page."""
    try:
        service = DashboardService.from_database(get_market_data_service(), settings=settings)
        snapshot = service.build()
    except Exception as e:
        logger.exception("Dashboard data load failed")
        st.error(f"❌ Error loading the dashboard: {e}")
        st.stop()

    render_portfolio_summary(snapshot)
    render_categories(snapshot)
    render_performance_chart(snapshot)


def render_add_asset_form():
    """Render form to add new assets."""
    st.subheader("➕ Add New Asset")

    with st.form("add_asset_form"):
        col1, col2 = st.columns(2)

        with col1:
            name = st.text_input("Name", placeholder="e.g., Amundi MSCI World, Livret A", key="new_asset_name")
            symbol = st.text_input("Symbol", placeholder="e.g., CW8, BTC, LIVRETA", key="new_asset_symbol")

        with col2:
            type_label = st.selectbox("Type", list(ASSET_TYPE_OPTIONS.keys()), key="new_asset_type")
            initial_rate = st.number_input(
                "Initial interest rate (%)",
                min_value=0.0,
                step=0.05,
                value=0.0,
                key="new_asset_rate",
                help="Savings accounts only"
            )

        submitted = st.form_submit_button("Add Asset", use_container_width=True)

        if submitted:
            if name and symbol:
                asset = AssetRepository.add(name, symbol, ASSET_TYPE_OPTIONS[type_label])
                if asset.asset_type == AssetType.SAVINGS and initial_rate > 0:
                    InterestRateRepository.add_rate(asset.id, initial_rate, today())
                st.success(f"✅ Added {asset.name} ({asset.symbol})!")
                st.rerun()
            else:
                st.error("❌ Please fill in name and symbol.")


def render_add_transaction_form():
    """Render form to record a buy or sell."""
    st.subheader("🧾 New Transaction")

    assets = AssetRepository.get_all()
    if not assets:
        st.info("No assets available. Add an asset first.")
        return

    with st.form("add_transaction_form"):
        col1, col2 = st.columns(2)

        with col1:
            asset_options = {f"{a.name} ({a.symbol})": a for a in assets}
            selected = st.selectbox("Asset*", options=list(asset_options.keys()))
            transaction_type = st.radio(
                "Type*",
                [TransactionType.BUY.value, TransactionType.SELL.value],
                horizontal=True
            )
            transaction_date = st.date_input("Date*", value=today(), max_value=today())

        with col2:
            quantity = st.number_input("Quantity*", min_value=0.0, step=0.0001, value=1.0, format="%.4f")
            price_per_unit = st.number_input("Price per unit*", min_value=0.0, step=0.01, value=0.0)
            total_amount = st.number_input(
                "Total amount",
                min_value=0.0,
                step=0.01,
                value=0.0,
                help="Leave at 0 to use quantity x price per unit"
            )

        submitted = st.form_submit_button("Record Transaction", use_container_width=True)

        if submitted:
            asset = asset_options[selected]
            try:
                tx = TransactionRepository.add(
                    asset_id=asset.id,
                    transaction_date=transaction_date,
                    transaction_type=transaction_type,
                    quantity=quantity,
                    price_per_unit=price_per_unit,
                    total_amount=total_amount if total_amount > 0 else None
                )
                st.success(
                    f"✅ Recorded {tx.transaction_type} of {tx.quantity} {asset.symbol} "
                    f"for {format_currency(tx.total_amount)}"
                )
                st.rerun()
            except ServiceError as e:
                st.error(f"❌ {e}")

    st.markdown("---")
    st.markdown("### Recent Transactions")

    names = {a.id: a.symbol for a in assets}
    transactions = TransactionRepository.get_all()[:10]
    if transactions:
        for tx in transactions:
            st.text(
                f"{tx.transaction_date} | {tx.transaction_type.upper()} "
                f"{names.get(tx.asset_id, '?')} | {tx.quantity} @ {tx.price_per_unit:.2f} "
                f"= {tx.total_amount:.2f}"
            )
    else:
        st.info("No transactions recorded yet.")


def render_interest_rates():
    """Render rate history management for savings accounts."""
    st.subheader("💶 Savings Interest Rates")

    savings = [a for a in AssetRepository.get_all() if a.asset_type == AssetType.SAVINGS]
    if not savings:
        st.info("No savings accounts yet.")
        return

    for asset in savings:
        with st.expander(f"**{asset.name}** ({asset.symbol})"):
            history = InterestRateRepository.get_history(asset.id)
            current = InterestRateRepository.get_current_rate(asset.id)
            st.caption(f"Current rate: {current}%" if current is not None else "Current rate: none")
            if history:
                for rate in history:
                    end = rate.end_date.isoformat() if rate.end_date else "ongoing"
                    st.text(f"{rate.start_date.isoformat()} -> {end} | {rate.rate}%")
            else:
                st.info("No rate recorded: no interest accrues.")

            with st.form(f"rate_form_{asset.id}"):
                new_rate = st.number_input("New annual rate (%)", min_value=0.0, step=0.05, value=0.0)
                start = st.date_input("Effective from", value=today())
                if st.form_submit_button("Set Rate"):
                    InterestRateRepository.add_rate(asset.id, new_rate, start)
                    st.success(f"✅ {asset.name}: {new_rate}% from {start.isoformat()}")
                    st.rerun()


# ==================== MAIN APP ====================
def main():
    """Main application entry point."""
    if not st.session_state.authenticated:
        render_login()
        return

    st.title("🪺 NestEgg")
    st.markdown("*Household portfolio tracker*")

    if st.sidebar.button("🔄 Refresh Prices", use_container_width=True):
        get_market_data_service().clear_cache()
    if st.sidebar.button("Sign out", use_container_width=True):
        st.session_state.authenticated = False
        st.rerun()

    tab1, tab2, tab3, tab4 = st.tabs([
        "📊 Dashboard", "🧾 Transactions", "➕ Add Asset", "💶 Interest Rates"
    ])

    with tab1:
        render_dashboard()

    with tab2:
        render_add_transaction_form()

    with tab3:
        render_add_asset_form()

    with tab4:
        render_interest_rates()


if __name__ == "__main__":
    main()
