"""
Streamlit Frontend for Expense Tracker

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. The backend is the source of truth: pages re-fetch, they never cache rows

Pages before sign-in: Login, Sign Up, Forgot Password.
Pages after sign-in: Expenses, Chat, Receipts, Dashboard, Settings.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from expensetracker.agents import available_models
from expensetracker.config import get_settings, validate_all_settings
from expensetracker.errors import ExpenseTrackerError
from expensetracker.models.expense import ChatMessage, ExpenseCategory, PaymentMethod
from expensetracker.models.user import AuthSession
from expensetracker.orchestrator import AppComponents, create_app_components
from expensetracker.queries import SUPPORTED_PERIODS
from expensetracker.services.chat_history import ChatHistoryStore


st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class StreamlitChatHistoryStore(ChatHistoryStore):
    """Chat history kept in the browser session's ``st.session_state``."""

    KEY = "chat_history"

    def _all(self) -> dict[str, list[ChatMessage]]:
        if self.KEY not in st.session_state:
            st.session_state[self.KEY] = {}
        return st.session_state[self.KEY]

    def load(self, user_id: str) -> list[ChatMessage]:
        return list(self._all().get(user_id, []))

    def append(self, user_id: str, message: ChatMessage) -> None:
        self._all().setdefault(user_id, []).append(message)

    def clear(self, user_id: str) -> None:
        self._all().pop(user_id, None)


def get_components() -> AppComponents:
    """
    Components for this browser session.

    Each session gets its own backend client because the client carries
    the signed-in user's auth session.
    """
    if "components" not in st.session_state:
        components = create_app_components()
        components.auth_service.on_auth_state_change(_on_auth_change)
        st.session_state.components = components
    return st.session_state.components


def _on_auth_change(event: str, session: Optional[AuthSession]) -> None:
    if event.upper().endswith("SIGNED_OUT"):
        st.session_state.session = None
    elif session is not None:
        st.session_state.session = session


def current_session() -> Optional[AuthSession]:
    return st.session_state.get("session")


def show_error(error: Exception) -> None:
    if isinstance(error, ExpenseTrackerError):
        st.error(error.message)
    else:
        st.error(f"Something went wrong: {error}")


def main():
    """Main application entry point."""
    try:
        components = get_components()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        render_settings_page()
        return

    session = current_session()

    st.sidebar.title("💸 Expense Tracker")
    st.sidebar.markdown("---")

    if session is None:
        page = st.sidebar.radio(
            "Navigate to:",
            ["🔐 Login", "📝 Sign Up", "🔑 Forgot Password"],
            index=0,
        )
        if page == "🔐 Login":
            render_login_page(components)
        elif page == "📝 Sign Up":
            render_signup_page(components)
        else:
            render_forgot_password_page(components)
        return

    page = st.sidebar.radio(
        "Navigate to:",
        ["➕ Expenses", "💬 Chat", "🧾 Receipts", "📊 Dashboard", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.caption(f"Signed in as {session.user.email or session.user.id}")
    if st.sidebar.button("🚪 Log out"):
        try:
            run_async(components.auth_service.sign_out())
        except ExpenseTrackerError as e:
            show_error(e)
        st.session_state.session = None
        st.rerun()

    if page == "➕ Expenses":
        render_expenses_page(components, session)
    elif page == "💬 Chat":
        render_chat_page(components, session)
    elif page == "🧾 Receipts":
        render_receipts_page(components)
    elif page == "📊 Dashboard":
        render_dashboard_page(components, session)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# AUTH PAGES
# =============================================================================

def render_login_page(components: AppComponents):
    st.title("🔐 Login")

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        try:
            st.session_state.session = run_async(
                components.auth_service.sign_in(email, password)
            )
            st.rerun()
        except ExpenseTrackerError as e:
            show_error(e)


def render_signup_page(components: AppComponents):
    st.title("📝 Sign Up")

    with st.form("signup"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Create account", type="primary")

    if submitted:
        if password != confirm:
            st.error("Passwords do not match")
            return
        try:
            run_async(components.auth_service.sign_up(email, password))
            st.success("Account created. Check your email to confirm it, then log in.")
        except ExpenseTrackerError as e:
            show_error(e)


def render_forgot_password_page(components: AppComponents):
    """Request a reset code by email, then set a new password with it."""
    st.title("🔑 Forgot Password")

    with st.form("request_reset"):
        email = st.text_input("Email", key="reset_email")
        submitted = st.form_submit_button("Send reset email")

    if submitted:
        settings = get_settings().app
        try:
            run_async(components.password_flow.request_reset(
                email, f"{settings.site_url.rstrip('/')}{settings.reset_password_path}"
            ))
            st.session_state.reset_requested_for = email
            st.success("If an account exists for that email, a reset code is on its way.")
        except ExpenseTrackerError as e:
            show_error(e)

    if st.session_state.get("reset_requested_for"):
        st.markdown("---")
        st.markdown("### Set a new password")
        with st.form("reset_password"):
            code = st.text_input("Code from the email")
            new_password = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm new password", type="password")
            reset = st.form_submit_button("Update password", type="primary")

        if reset:
            if new_password != confirm:
                st.error("Passwords do not match")
                return
            try:
                session = run_async(components.auth_service.verify_otp(
                    st.session_state.reset_requested_for, code
                ))
                run_async(components.password_flow.update_password(
                    session.access_token, new_password
                ))
                st.session_state.reset_requested_for = None
                st.success("Password updated. You can now log in with your new password.")
            except ExpenseTrackerError as e:
                show_error(e)


# =============================================================================
# EXPENSES
# =============================================================================

def render_expenses_page(components: AppComponents, session: AuthSession):
    """Manual entry form and the filtered list."""
    st.title("➕ Expenses")
    flow = components.expense_flow
    default_currency = get_settings().app.default_currency

    with st.form("add_expense", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            currency = st.text_input("Currency", value=default_currency, max_chars=3)
        with col2:
            category = st.selectbox(
                "Category",
                options=list(ExpenseCategory),
                format_func=lambda c: c.label,
            )
            payment_method = st.selectbox(
                "Payment method",
                options=list(PaymentMethod),
                format_func=lambda p: p.label,
            )
        with col3:
            expense_date = st.date_input("Date", value=date.today())
            description = st.text_input("Note (optional)")
        submitted = st.form_submit_button("Add expense", type="primary")

    if submitted:
        try:
            record = run_async(flow.add_expense(session.user.id, {
                "amount": Decimal(str(amount)),
                "currency": currency,
                "category": category.value,
                "date": expense_date,
                "payment_method": payment_method.value,
                "description": description,
            }))
            st.success(f"✅ Added {record.amount} {record.currency} for {record.category}")
        except ExpenseTrackerError as e:
            show_error(e)

    st.markdown("---")
    render_expense_list(components, session)


def render_expense_list(components: AppComponents, session: AuthSession):
    flow = components.expense_flow

    col1, col2, col3 = st.columns([2, 2, 1])
    with col1:
        period = st.selectbox(
            "Period",
            options=[None] + list(SUPPORTED_PERIODS),
            format_func=lambda p: "All time" if p is None else p.title(),
        )
    with col2:
        category = st.selectbox(
            "Filter by category",
            options=[None] + list(ExpenseCategory),
            format_func=lambda c: "All categories" if c is None else c.label,
        )
    with col3:
        st.button("🔄 Refresh")

    try:
        expenses = run_async(flow.list_expenses(
            session.user.id,
            category=category.value if category else None,
            period=period,
        ))
        total = run_async(flow.get_total(
            session.user.id,
            category=category.value if category else None,
            period=period,
        ))
    except ExpenseTrackerError as e:
        show_error(e)
        return

    st.metric("Total", f"{total.total:,.2f} {total.currency}", f"{total.count} expenses", delta_color="off")

    if not expenses:
        st.info("No expenses yet. Add one above or describe it on the Chat page.")
        return

    df = pd.DataFrame([e.model_dump(mode="json") for e in expenses])
    columns = [c for c in ("date", "amount", "currency", "category", "payment_method", "description") if c in df]
    st.dataframe(df[columns], use_container_width=True, hide_index=True)


# =============================================================================
# CHAT
# =============================================================================

def render_chat_page(components: AppComponents, session: AuthSession):
    """Describe an expense in plain words; it is extracted and saved."""
    st.title("💬 Chat")
    st.caption('Try: "spent 20-03-2025 lunch 250 INR cash"')

    history = StreamlitChatHistoryStore()
    user_id = session.user.id

    if st.button("🗑️ Clear chat"):
        history.clear(user_id)
        st.rerun()

    for message in history.load(user_id):
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.markdown(message.content)

    prompt = st.chat_input("Describe an expense...")
    if not prompt:
        return

    history.append(user_id, ChatMessage(role="user", content=prompt))
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        with st.spinner("Reading your expense..."):
            try:
                record = run_async(components.expense_flow.extract_from_chat(
                    history.load(user_id), user_id
                ))
                reply = (
                    f"✅ Added **{record.amount} {record.currency}** for "
                    f"**{record.category}** on {record.date.isoformat()} "
                    f"({record.payment_method})."
                )
            except ExpenseTrackerError as e:
                reply = f"❌ {e.message}"
        st.markdown(reply)
    history.append(user_id, ChatMessage(role="ai", content=reply))


# =============================================================================
# RECEIPTS
# =============================================================================

def render_receipts_page(components: AppComponents):
    st.title("🧾 Receipts")
    flow = components.receipt_flow
    app_settings = get_settings().app

    uploaded_file = st.file_uploader(
        "Upload a receipt",
        type=app_settings.supported_formats_list,
        help=f"Up to {app_settings.max_upload_size_mb} MB",
    )
    if uploaded_file and st.button("📤 Upload", type="primary"):
        with st.spinner("Uploading..."):
            try:
                run_async(flow.upload(
                    content=uploaded_file.getvalue(),
                    filename=uploaded_file.name,
                    content_type=uploaded_file.type or "application/octet-stream",
                ))
                st.success("✅ Receipt uploaded")
            except ExpenseTrackerError as e:
                show_error(e)

    st.markdown("---")

    try:
        receipts = run_async(flow.list_receipts())
    except ExpenseTrackerError as e:
        show_error(e)
        return

    if not receipts:
        st.info("No receipts uploaded yet.")
        return

    for receipt in receipts:
        col1, col2 = st.columns([4, 1])
        with col1:
            st.markdown(f"[{receipt.url}]({receipt.public_url})")
            if receipt.uploaded_at:
                st.caption(receipt.uploaded_at.strftime("%d %B %Y %H:%M"))
        with col2:
            if st.button("🗑️ Delete", key=f"delete_{receipt.url}"):
                try:
                    run_async(flow.delete(receipt.url))
                    st.rerun()
                except ExpenseTrackerError as e:
                    show_error(e)


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(components: AppComponents, session: AuthSession):
    """Budget allocations next to actual spend."""
    st.title("📊 Dashboard")
    flow = components.budget_flow

    try:
        summary = run_async(flow.dashboard(session.user.id))
    except ExpenseTrackerError as e:
        show_error(e)
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Total budget", f"{summary.total_budget:,.2f}")
    col2.metric("Spent", f"{summary.total_spent:,.2f}")
    col3.metric("Remaining", f"{summary.remaining:,.2f}")

    if summary.budgets:
        budget_df = pd.DataFrame([
            {"category": b.category, "budget": float(b.budget)} for b in summary.budgets
        ])
        fig_pie = px.pie(
            budget_df,
            names="category",
            values="budget",
            title="Budget allocation",
            hole=0.4,
        )
        st.plotly_chart(fig_pie, use_container_width=True)

        with st.expander("✏️ Edit budgets"):
            with st.form("edit_budgets"):
                new_values = {
                    b.id: st.number_input(
                        b.category.title(),
                        min_value=0.0,
                        value=float(b.budget),
                        step=100.0,
                        key=f"budget_{b.id}",
                    )
                    for b in summary.budgets
                }
                if st.form_submit_button("Save budgets", type="primary"):
                    try:
                        for budget in summary.budgets:
                            value = Decimal(str(new_values[budget.id]))
                            if value != budget.budget:
                                run_async(flow.update_budget(budget.id, value))
                        st.success("✅ Budgets saved")
                        st.rerun()
                    except ExpenseTrackerError as e:
                        show_error(e)
    else:
        st.info("No budget allocations found.")

    st.markdown("---")
    st.markdown("### Spending by category")

    budgets_by_category = {b.category.strip().lower(): b.budget for b in summary.budgets}
    categories = [c.value for c in ExpenseCategory]
    spend_df = pd.DataFrame([
        {
            "category": c.title(),
            "spent": float(summary.spent_by_category.get(c, Decimal("0"))),
            "budget": float(budgets_by_category.get(c, Decimal("0"))),
        }
        for c in categories
    ])
    fig_bar = px.bar(
        spend_df,
        x="category",
        y=["spent", "budget"],
        barmode="group",
        title="Spent vs budget",
    )
    st.plotly_chart(fig_bar, use_container_width=True)

    gauge_cols = st.columns(3)
    for idx, category in enumerate(("food", "housing", "transportation")):
        spent = float(summary.spent_by_category.get(category, Decimal("0")))
        budget = float(budgets_by_category.get(category, Decimal("0")))
        fig = go.Figure(go.Indicator(
            mode="gauge+number",
            value=spent,
            title={"text": f"{category.title()} expense"},
            gauge={"axis": {"range": [0, max(budget, spent, 1.0)]}},
        ))
        gauge_cols[idx].plotly_chart(fig, use_container_width=True)


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Database, Auth, Storage)", "supabase"),
        ("Gemini (AI)", "gemini"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("gemini") and st.button("🔍 List available Gemini models"):
        try:
            st.write(available_models())
        except Exception as e:
            st.error(f"Could not list models: {e}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
