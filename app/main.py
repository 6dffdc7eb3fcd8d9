"""
Streamlit Frontend for vaultX

This is the user interface for signing up, linking a bank account,
checking balances and sending money.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every form lists all of its problems at once
3. Clear error messages in simple language
4. No raw provider errors on screen

The session cookie lives in st.session_state as a SessionContext and is
handed to every workflow explicitly.
"""

import asyncio
from decimal import Decimal
from typing import Optional

import streamlit as st

from vaultx.audit import create_correlation_id
from vaultx.config import validate_all_settings
from vaultx.errors import (
    ConfigurationFailure,
    ProviderFailure,
    ValidationFailure,
    classify_auth_failure,
)
from vaultx.models.user import SessionContext, SignInForm, SignUpForm, User
from vaultx.orchestrator import AppComponents, create_app_components
from vaultx.utils import format_amount


# Page configuration
st.set_page_config(
    page_title="vaultX",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .sharable-id {
        padding: 12px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        font-family: monospace;
        margin: 10px 0;
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


@st.cache_resource
def get_components() -> Optional[AppComponents]:
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except ConfigurationFailure as e:
        st.error(f"vaultX is not configured: {e.message}")
        return None


def get_session() -> SessionContext:
    if "session" not in st.session_state:
        st.session_state.session = SessionContext()
    return st.session_state.session


def show_provider_failure(error: ProviderFailure, action: str, debug: bool = False):
    st.error(f"{action} failed: {error.message}")
    if debug:
        with st.expander("Details"):
            st.json(error.to_dict())


def render_sidebar_logout(components: AppComponents, session: SessionContext):
    st.sidebar.markdown("---")
    if st.sidebar.button("Log out", key="logout"):
        run_async(components.onboarding.logout(session))
        st.rerun()


def main():
    """Main application entry point."""
    components = get_components()
    if components is None:
        render_settings_page()
        return

    session = get_session()
    identity = run_async(components.onboarding.get_logged_in_identity(session))
    user = run_async(components.onboarding.get_user_info(identity)) if identity else None

    st.sidebar.title("🏦 vaultX")
    st.sidebar.markdown("---")

    if identity is None:
        page = st.sidebar.radio(
            "Navigate to:",
            ["🔑 Sign In", "📝 Sign Up", "⚙️ Settings"],
            index=0,
        )
        if page == "🔑 Sign In":
            render_sign_in_page(components)
        elif page == "📝 Sign Up":
            render_sign_up_page(components)
        else:
            render_settings_page()
        return

    if user is None:
        # Signed in, but sign-up stopped before the user record was saved
        st.sidebar.markdown(f"Signed in as **{identity.email}**")
        render_sidebar_logout(components, session)
        st.title("Account setup incomplete")
        st.warning(
            "Account setup incomplete: your sign-in works, but your vaultX "
            "profile was never saved. Log out and contact support to finish "
            "setting up your account."
        )
        return

    st.sidebar.markdown(f"Signed in as **{user.name}**")
    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🔗 Link Bank", "💸 Transfer", "⚙️ Settings"],
        index=0,
    )
    render_sidebar_logout(components, session)

    if page == "📊 Dashboard":
        render_dashboard_page(components, user)
    elif page == "🔗 Link Bank":
        render_link_page(components, user)
    elif page == "💸 Transfer":
        render_transfer_page(components, user)
    else:
        render_settings_page()


def render_sign_in_page(components: AppComponents):
    st.title("🔑 Sign In")

    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign In")

    if not submitted:
        return

    with st.spinner("Signing in..."):
        try:
            run_async(components.onboarding.sign_in(
                SignInForm(email=email, password=password),
                get_session(),
                correlation_id=create_correlation_id(),
            ))
        except (ValidationFailure, ProviderFailure) as e:
            feedback = classify_auth_failure(e)
            if feedback.redirect_home:
                st.info(feedback.message)
                st.rerun()
            st.error(feedback.message)
            return

    st.rerun()


def render_sign_up_page(components: AppComponents):
    st.title("📝 Create your account")

    with st.form("sign_up"):
        col1, col2 = st.columns(2)
        with col1:
            first_name = st.text_input("First name")
        with col2:
            last_name = st.text_input("Last name")

        address1 = st.text_input("Address")

        col1, col2, col3 = st.columns([2, 1, 1])
        with col1:
            city = st.text_input("City")
        with col2:
            state = st.text_input("State", max_chars=2, help="Two letters, e.g. NY")
        with col3:
            postal_code = st.text_input("Postal code")

        col1, col2 = st.columns(2)
        with col1:
            date_of_birth = st.text_input("Date of birth", placeholder="YYYY-MM-DD")
        with col2:
            ssn = st.text_input("SSN", type="password", placeholder="Example: 1234")

        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign Up")

    if not submitted:
        return

    form = SignUpForm(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        address1=address1,
        city=city,
        state=state,
        postal_code=postal_code,
        date_of_birth=date_of_birth,
        ssn=ssn,
    )

    with st.spinner("Creating your account..."):
        try:
            run_async(components.onboarding.sign_up(
                form,
                get_session(),
                correlation_id=create_correlation_id(),
            ))
        except ValidationFailure as e:
            st.error(e.message)
            return
        except ProviderFailure as e:
            feedback = classify_auth_failure(e)
            st.error(feedback.message)
            if components.debug_mode:
                with st.expander("Details"):
                    st.json(e.to_dict())
            return

    st.success("Account created. Welcome to vaultX!")
    st.rerun()


def render_dashboard_page(components: AppComponents, user: User):
    st.title(f"Welcome, {user.first_name}")

    with st.spinner("Loading balances..."):
        try:
            summary = run_async(components.dashboard.get_accounts_summary(user))
        except ProviderFailure as e:
            show_provider_failure(e, "Loading balances", components.debug_mode)
            return

    col1, col2 = st.columns(2)
    col1.metric("Linked banks", summary.total_banks)
    col2.metric("Total current balance", format_amount(summary.total_current_balance))

    st.markdown("---")

    if not summary.accounts:
        st.info("No bank accounts yet. Use the 'Link Bank' page to add one.")
        return

    for item in summary.accounts:
        account = item.account
        with st.expander(f"{account.name} •••• {account.mask or ''}"):
            col1, col2 = st.columns(2)
            col1.metric("Current", format_amount(account.current_balance))
            col2.metric("Available", format_amount(account.available_balance))
            st.caption(f"{account.type or ''} {account.subtype or ''}".strip())
            st.markdown("Share this ID to receive money:")
            st.markdown(
                f'<div class="sharable-id">{item.bank.sharable_id}</div>',
                unsafe_allow_html=True,
            )


def render_link_page(components: AppComponents, user: User):
    st.title("🔗 Link a bank account")

    st.markdown(
        "1. Create a link token\n"
        "2. Complete Plaid Link with it\n"
        "3. Paste the public token Link returns"
    )

    if st.button("Create link token"):
        try:
            st.session_state.link_token = run_async(
                components.linking.create_link_token(user)
            )
        except ProviderFailure as e:
            show_provider_failure(e, "Creating a link token", components.debug_mode)

    if st.session_state.get("link_token"):
        st.code(st.session_state.link_token)

    with st.form("exchange"):
        public_token = st.text_input("Public token")
        submitted = st.form_submit_button("Link account")

    if not submitted:
        return
    if not public_token.strip():
        st.error("Please enter the public token from Plaid Link")
        return

    with st.spinner("Linking your account..."):
        try:
            result = run_async(components.linking.exchange_public_token(
                public_token.strip(),
                user,
                correlation_id=create_correlation_id(),
            ))
        except ProviderFailure as e:
            show_provider_failure(e, "Linking the account", components.debug_mode)
            return

    st.success(f"{result.message}: {result.account.name}")
    st.session_state.link_token = None


def render_transfer_page(components: AppComponents, user: User):
    st.title("💸 Send money")

    banks = run_async(components.dashboard.list_banks(user))
    if not banks:
        st.info("Link a bank account before sending money.")
        return

    with st.form("transfer"):
        source = st.selectbox(
            "From",
            options=banks,
            format_func=lambda b: f"Account {b.account_id[-4:]}",
        )
        sharable_id = st.text_input("Receiver's sharable ID")
        amount = st.number_input("Amount (USD)", min_value=0.0, step=1.0, format="%.2f")
        submitted = st.form_submit_button("Send")

    if not submitted:
        return

    with st.spinner("Sending..."):
        try:
            receipt = run_async(components.transfers.transfer_funds(
                source,
                sharable_id,
                Decimal(str(amount)),
                correlation_id=create_correlation_id(),
            ))
        except ValidationFailure as e:
            st.error(e.message)
            return
        except ProviderFailure as e:
            show_provider_failure(e, "Transfer", components.debug_mode)
            return

    st.success(f"Sent {format_amount(receipt.amount)}")
    st.caption(receipt.transfer_url)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Appwrite (Accounts & Database)", "appwrite"),
        ("Dwolla (Payments)", "dwolla"),
        ("Plaid (Bank Linking)", "plaid"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
