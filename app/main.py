"""
Streamlit Frontend for Bank Ledger

The screens a ledger user works through: log in or sign up, then the
banking menu (account info, personal info, edits, history, transfer,
deposit, withdraw, logout).

DESIGN PRINCIPLES:
1. All prompting, retries and display live here, never in the core
2. Every ledger error is shown in plain language, never as a traceback
3. Money is typed as text and handed to the store unconverted
4. A rejected operation leaves the form as it was so the user can fix it
"""

from decimal import Decimal

import streamlit as st
from pydantic import ValidationError

from bank_ledger.errors import LedgerError
from bank_ledger.models.transaction import TransactionKind
from bank_ledger.models.user import UserProfile
from bank_ledger.orchestrator import BankingSession, create_app_components
from bank_ledger.validation import PasswordPolicy


# Page configuration
st.set_page_config(
    page_title="Bank Ledger",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
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


MENU = [
    "🏦 Account Info",
    "👤 Personal Info",
    "✏️ Edit Personal Info",
    "📜 History",
    "🔁 Transfer",
    "💵 Deposit",
    "🏧 Withdraw",
    "🚪 Logout",
]

password_policy = PasswordPolicy()


@st.cache_resource
def get_components():
    """Load the store once per server process."""
    return create_app_components()


def get_session() -> BankingSession:
    """One banking session per browser session, sharing the cached store."""
    if "banking_session" not in st.session_state:
        _, store = get_components()
        st.session_state.banking_session = BankingSession(store)
    return st.session_state.banking_session


def money(value: Decimal) -> str:
    return f"{value:,.2f}"


def main():
    """Main application entry point."""
    try:
        session = get_session()
    except LedgerError as e:
        st.error(f"The ledger files could not be loaded: {e}")
        st.stop()

    st.sidebar.title("🏦 Bank Ledger")
    st.sidebar.markdown("---")

    if not session.is_logged_in:
        page = st.sidebar.radio("Navigate to:", ["🔑 Login", "📝 Sign Up"], index=0)
        if page == "🔑 Login":
            render_login_page(session)
        else:
            render_sign_up_page(session)
        return

    st.sidebar.markdown(f"Logged in as **{session.current_user_name}**")
    page = st.sidebar.radio("Navigate to:", MENU, index=0)

    flash = st.session_state.pop("flash", None)
    if flash:
        st.success(flash)

    # Route to appropriate page
    if page == "🏦 Account Info":
        render_account_page(session)
    elif page == "👤 Personal Info":
        render_personal_info_page(session)
    elif page == "✏️ Edit Personal Info":
        render_edit_page(session)
    elif page == "📜 History":
        render_history_page(session)
    elif page == "🔁 Transfer":
        render_transfer_page(session)
    elif page == "💵 Deposit":
        render_deposit_page(session)
    elif page == "🏧 Withdraw":
        render_withdraw_page(session)
    elif page == "🚪 Logout":
        session.logout()
        st.rerun()


def render_login_page(session: BankingSession):
    st.title("🔑 Login")

    with st.form("login"):
        user_name = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login", type="primary")

    if submitted:
        try:
            session.login(user_name, password)
        except LedgerError as e:
            st.error(str(e))
        else:
            st.rerun()


def render_sign_up_page(session: BankingSession):
    st.title("📝 Sign Up")
    minimum = session.store.settings.min_initial_deposit

    with st.form("sign_up"):
        col1, col2 = st.columns(2)
        with col1:
            first_name = st.text_input("First name *")
            email = st.text_input("Email *")
            password = st.text_input("Password *", type="password")
        with col2:
            last_name = st.text_input("Last name *")
            user_name = st.text_input("Username *")
            initial_deposit = st.text_input(
                f"Initial deposit (at least {money(minimum)}) *",
                value=str(minimum),
            )
        submitted = st.form_submit_button("Create account", type="primary")

    if not submitted:
        return

    if not all([first_name, last_name, email, user_name, password]):
        st.error("Please fill in every field")
        return

    check = password_policy.check(password)
    if not check.is_valid:
        st.warning(password_policy.get_user_friendly_summary(check))
        return

    try:
        profile = UserProfile(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password,
        )
        user = session.sign_up(user_name, profile, initial_deposit)
    except ValidationError as e:
        st.error("; ".join(f"{err['loc'][0]}: {err['msg']}" for err in e.errors()))
        return
    except LedgerError as e:
        st.error(str(e))
        return

    # Shown by main() after the rerun
    st.session_state.flash = (
        f"Welcome, {user.first_name}! Your account number is {user.account_id}."
    )
    st.rerun()


def render_account_page(session: BankingSession):
    st.title("🏦 Account Info")
    account = session.current_account()

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Account number", account.account_id)
    with col2:
        st.markdown("**Balance**")
        st.markdown(f'<div class="big-number">{money(account.balance)}</div>', unsafe_allow_html=True)

    if not session.queries.is_consistent(account.account_id):
        st.warning("Your transaction history does not add up to your balance. Please contact support.")


def render_personal_info_page(session: BankingSession):
    st.title("👤 Personal Info")
    user = session.current_user()

    st.markdown(f"""
    - **First name:** {user.first_name}
    - **Last name:** {user.last_name}
    - **Email:** {user.email}
    - **Username:** {user.user_name}
    """)


def render_edit_page(session: BankingSession):
    st.title("✏️ Edit Personal Info")
    user = session.current_user()

    tab_profile, tab_user_name, tab_password = st.tabs(["Profile", "Username", "Password"])

    with tab_profile:
        with st.form("edit_profile"):
            first_name = st.text_input("First name", value=user.first_name)
            last_name = st.text_input("Last name", value=user.last_name)
            email = st.text_input("Email", value=user.email)
            submitted = st.form_submit_button("Save profile", type="primary")
        if submitted:
            try:
                session.update_profile(
                    first_name=first_name if first_name != user.first_name else None,
                    last_name=last_name if last_name != user.last_name else None,
                    email=email if email != user.email else None,
                )
            except LedgerError as e:
                st.error(str(e))
            else:
                st.success("Profile updated")

    with tab_user_name:
        with st.form("edit_user_name"):
            new_user_name = st.text_input("New username", value=user.user_name)
            submitted = st.form_submit_button("Change username", type="primary")
        if submitted:
            try:
                session.rename(new_user_name)
            except LedgerError as e:
                st.error(str(e))
            else:
                st.success(f"Username changed to {new_user_name}")

    with tab_password:
        st.caption(f"Attempts left this session: {session.password_attempts_left}")
        with st.form("edit_password"):
            old_password = st.text_input("Current password", type="password")
            new_password = st.text_input("New password", type="password")
            submitted = st.form_submit_button("Change password", type="primary")
        if submitted:
            check = password_policy.check(new_password)
            if not check.is_valid:
                st.warning(password_policy.get_user_friendly_summary(check))
                return
            try:
                session.change_password(old_password, new_password)
            except LedgerError as e:
                st.error(str(e))
            else:
                st.success("Password updated")


def render_history_page(session: BankingSession):
    st.title("📜 History")

    col1, col2 = st.columns(2)
    with col1:
        kind = st.selectbox(
            "Kind",
            options=[None] + list(TransactionKind),
            format_func=lambda k: "All" if k is None else k.value,
        )
    with col2:
        limit = st.number_input("Show at most", min_value=1, max_value=1000, value=50)

    statement = session.statement(kind=kind, limit=int(limit), newest_first=True)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Balance", money(statement.balance))
    with col2:
        st.metric("Money in", money(statement.total_in))
    with col3:
        st.metric("Money out", money(statement.total_out))

    if not statement.data_found:
        st.info("No transactions found.")
        return

    st.dataframe(
        [
            {
                "Time": entry.timestamp,
                "Kind": entry.kind.value,
                "Amount": money(entry.amount),
                "Details": entry.message,
                "Balance after": money(entry.resulting_balance),
            }
            for entry in statement.entries
        ],
        use_container_width=True,
    )
    st.caption(f"{statement.query_description} · {statement.total_entries} entries in total")


def render_transfer_page(session: BankingSession):
    st.title("🔁 Transfer")

    with st.form("transfer"):
        receiver = st.text_input("Recipient username")
        amount = st.text_input("Amount")
        submitted = st.form_submit_button("Transfer", type="primary")

    if submitted:
        try:
            out_entry, _ = session.transfer(receiver, amount)
        except LedgerError as e:
            st.error(str(e))
        else:
            st.success(
                f"Sent {money(out_entry.amount)} to {receiver}. "
                f"New balance: {money(out_entry.resulting_balance)}"
            )


def render_deposit_page(session: BankingSession):
    st.title("💵 Deposit")
    st.caption(f"At most {money(session.store.settings.max_deposit)} per deposit")

    with st.form("deposit"):
        amount = st.text_input("Amount")
        submitted = st.form_submit_button("Deposit", type="primary")

    if submitted:
        try:
            entry = session.deposit(amount)
        except LedgerError as e:
            st.error(str(e))
        else:
            st.success(f"Deposited {money(entry.amount)}. New balance: {money(entry.resulting_balance)}")


def render_withdraw_page(session: BankingSession):
    st.title("🏧 Withdraw")

    with st.form("withdraw"):
        amount = st.text_input("Amount")
        submitted = st.form_submit_button("Withdraw", type="primary")

    if submitted:
        try:
            entry = session.withdraw(amount)
        except LedgerError as e:
            st.error(str(e))
        else:
            st.success(f"Withdrew {money(entry.amount)}. New balance: {money(entry.resulting_balance)}")


if __name__ == "__main__":
    main()
