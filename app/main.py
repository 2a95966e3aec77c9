import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime, timedelta

import streamlit as st
import pandas as pd
import plotly.express as px

from treasury.config import get_settings
from treasury.domain import Currency, TransactionFilter, TransferRequest
from treasury.logging_config import setup_logging
from treasury.services import TreasuryService
from treasury.transforms import destination_choices

st.set_page_config(page_title="Treasury Management", layout="wide")

settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)

if "treasury" not in st.session_state:
    st.session_state.treasury = TreasuryService.from_settings(settings)

service: TreasuryService = st.session_state.treasury

CURRENCY_COLORS = {
    Currency.USD.value: "#16a34a",
    Currency.KES.value: "#2563eb",
    Currency.NGN.value: "#9333ea",
}


def fmt_money(amount, currency, decimals=2):
    return f"{float(amount):,.{decimals}f} {currency.value}"


def fmt_rate(rate):
    return "1:1" if rate == 1 else f"{float(rate):.4f}"


def tx_to_df(tx_list):
    rows = []
    for t in tx_list:
        rows.append({
            "Date & Time": t.timestamp.strftime("%b %d, %Y %H:%M"),
            "From Account": t.from_account,
            "To Account": t.to_account,
            "Amount": fmt_money(t.amount, t.currency),
            "FX Rate": fmt_rate(t.fx_rate),
            "Note": t.note or "-",
            "Scheduled": "🕒" if t.is_future else "",
        })
    return pd.DataFrame(rows)


st.title("🏦 Treasury Management")
st.caption("Financial Operations Dashboard")

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "💸 Transfer", "🧾 Transaction Log"]
)

if menu == "🏠 Overview":
    st.header("📊 Portfolio Summary")
    summary = service.portfolio_summary()
    cols = st.columns(max(1, len(summary)))
    for col, (currency, (total, count)) in zip(cols, summary.items()):
        with col:
            st.metric(currency.value, fmt_money(total, currency, decimals=0))
            st.caption(f"{count} account{'s' if count != 1 else ''}")

    st.header("💳 Treasury Accounts")
    accounts = service.get_accounts()
    per_row = 4
    for start in range(0, len(accounts), per_row):
        row = st.columns(per_row)
        for col, acc in zip(row, accounts[start:start + per_row]):
            with col:
                st.metric(acc.name, fmt_money(acc.balance, acc.currency))

    df_bal = pd.DataFrame([
        {"Account": a.name, "Currency": a.currency.value, "Balance": float(a.balance)}
        for a in accounts
    ])
    if not df_bal.empty:
        fig_bal = px.bar(
            df_bal,
            x="Account",
            y="Balance",
            color="Currency",
            color_discrete_map=CURRENCY_COLORS,
            facet_col="Currency",
            title="Balances by Account",
        )
        fig_bal.update_xaxes(matches=None)
        fig_bal.update_yaxes(matches=None, showticklabels=True)
        st.plotly_chart(fig_bal, use_container_width=True)

elif menu == "💸 Transfer":
    st.header("💸 Transfer Funds")
    accounts = service.get_accounts()
    labels = {a.id: f"{a.name} ({a.currency.value})" for a in accounts}

    # outside the form so the destination list follows the chosen source
    source_id = st.selectbox(
        "Source Account *", list(labels), format_func=labels.get, index=None,
        placeholder="Select source account",
    )
    if source_id:
        source = next(a for a in accounts if a.id == source_id)
        st.caption(f"Available: {fmt_money(source.balance, source.currency)}")
    destinations = [a.id for a in destination_choices(accounts, source_id)]

    with st.form("transfer_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            destination_id = st.selectbox(
                "Destination Account *", destinations, format_func=labels.get, index=None,
                placeholder="Select destination account",
            )
            amount = st.text_input("Amount *", placeholder="0.00")
        with col2:
            schedule = st.checkbox("Schedule for a future date")
            tomorrow = datetime.now() + timedelta(days=1)
            future_date = st.date_input("Future Date", value=tomorrow.date(), min_value=datetime.now().date())
            future_time = st.time_input("Future Time", value=tomorrow.time().replace(second=0, microsecond=0))
        note = st.text_area("Note (Optional)", placeholder="Add a note for this transfer...")
        submitted = st.form_submit_button("Transfer Funds")

    if submitted:
        if not source_id or not destination_id or not amount.strip():
            st.error("Please fill in all required fields")
        else:
            request = TransferRequest(
                source_account_id=source_id,
                destination_account_id=destination_id,
                amount=amount,
                note=note,
                future_instant=datetime.combine(future_date, future_time) if schedule else None,
            )
            with st.spinner("Processing..."):
                outcome = asyncio.run(service.submit_transfer(request))
            if outcome.success:
                st.success(f"✅ {outcome.message}")
                tx = outcome.transaction
                st.caption(
                    f"{fmt_money(tx.amount, tx.currency)} → "
                    f"{tx.to_account} at {fmt_rate(tx.fx_rate)} "
                    f"({float(tx.converted_amount):,.2f} credited)"
                )
            else:
                st.error(f"❌ {outcome.message}")

    st.subheader("Available Balances")
    st.dataframe(
        pd.DataFrame([
            {"Account": a.name, "Available": fmt_money(a.balance, a.currency)} for a in accounts
        ]),
        use_container_width=True,
        hide_index=True,
    )

elif menu == "🧾 Transaction Log":
    st.header("🧾 Transaction Log")
    accounts = service.get_accounts()

    col1, col2, col3 = st.columns(3)
    with col1:
        account_name = st.selectbox("Filter by Account", ["All accounts"] + [a.name for a in accounts])
    with col2:
        currencies = list(dict.fromkeys(a.currency.value for a in accounts))
        currency = st.selectbox("Filter by Currency", ["All currencies"] + currencies)
    with col3:
        show_future = st.checkbox("Show future transfers", value=True)

    filters = TransactionFilter(
        account=None if account_name == "All accounts" else account_name,
        currency=None if currency == "All currencies" else Currency(currency),
        show_future=show_future,
    )
    shown = service.get_transactions(filters)
    st.caption(f"{len(shown)} transaction{'s' if len(shown) != 1 else ''}")

    if shown:
        st.dataframe(tx_to_df(shown), use_container_width=True, hide_index=True)
        csv = tx_to_df(shown).to_csv(index=False)
        st.download_button("⬇ Download CSV", csv, file_name="transactions.csv")
    else:
        st.info("No transactions found. Try adjusting your filters to see more results.")
