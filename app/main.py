"""
Streamlit Frontend for bbucks

Stands in for the chat platform: pick who you are, type a slash
command, and see what the bot would say publicly and privately.

DESIGN PRINCIPLES:
1. Every change goes through the same chat commands as everyone else
2. Balances can be viewed at any past instant
3. The raw ledger log is always visible
"""

import asyncio
from datetime import datetime, time, timezone

import streamlit as st

from bbucks.audit import create_correlation_id
from bbucks.commands import HELP_EXAMPLES, CommandError
from bbucks.errors import LedgerError
from bbucks.orchestrator import LedgerService, create_app_components
from bbucks.parsing import format_timestamp


st.set_page_config(
    page_title="bbucks",
    page_icon="🪙",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_service() -> LedgerService:
    """Get or create the ledger service (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def main():
    """Main application entry point."""
    service = get_service()

    st.sidebar.title("🪙 bbucks")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💬 Commands", "📊 Balances", "📜 Ledger Log", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        "**Try:**\n" + "\n".join(f"- `{example}`" for example in HELP_EXAMPLES.values())
    )

    if page == "💬 Commands":
        render_commands_page(service)
    elif page == "📊 Balances":
        render_balances_page(service)
    elif page == "📜 Ledger Log":
        render_log_page(service)
    elif page == "⚙️ Settings":
        render_settings_page(service)


def render_commands_page(service: LedgerService):
    """Run chat commands as a user."""
    st.title("💬 Commands")

    ledger = run_async(service.load_ledger())
    users = sorted(ledger.users_snapshot())

    col1, col2 = st.columns([1, 3])

    with col1:
        user_name = st.selectbox("You are", options=users)
        command = st.selectbox("Command", options=service.handler.commands)

    with col2:
        text = st.text_input(
            "Text",
            placeholder=HELP_EXAMPLES[command.lstrip("/")].split(" ", 1)[1],
            help="Type 'help' for an example",
        )

    if st.button("Send", type="primary") and user_name:
        try:
            response = run_async(
                service.handle_command(
                    user_name=user_name,
                    command=command,
                    text=text,
                    correlation_id=create_correlation_id(),
                )
            )
        except CommandError as e:
            st.error(f"Error: {e}")
            return

        if response.say:
            channel = service.settings.bot_channel
            st.success(f"#{channel}: {response.say}" if channel else response.say)
        if response.ephemeral:
            st.info(response.ephemeral)
        for entry in response.commands:
            st.code(entry, language=None)


def render_balances_page(service: LedgerService):
    """Balances and pending claims, now or at any past instant."""
    st.title("📊 Balances")

    ledger = run_async(service.load_ledger())

    col1, col2 = st.columns(2)
    with col1:
        day = st.date_input("As of date", value=datetime.now(timezone.utc).date())
    with col2:
        moment_time = st.time_input("As of time (UTC)", value=time(23, 59, 59))

    as_of = datetime.combine(day, moment_time, tzinfo=timezone.utc)

    rows = [
        {
            "user": name,
            "id": user_id,
            "balance": ledger.get_balance(name, as_of),
            "pending claims": len(ledger.get_pending_claims(name, as_of)),
        }
        for name, user_id in sorted(ledger.users_snapshot().items(), key=lambda item: item[1])
    ]

    st.markdown(f"**As of:** `{format_timestamp(as_of)}`")
    st.dataframe(rows, use_container_width=True)

    with st.expander("⏳ Pending claims"):
        for name in sorted(ledger.users_snapshot()):
            claims = ledger.get_pending_claims(name, as_of)
            if not claims:
                continue
            st.markdown(f"**{name}**")
            for claim in claims:
                st.json(claim.model_dump(mode="json"))


def render_log_page(service: LedgerService):
    """The raw ledger log, oldest first."""
    st.title("📜 Ledger Log")

    ledger = run_async(service.load_ledger())
    history = ledger.history()

    st.markdown(f"**Entries:** {len(history)}")
    st.code("\n".join(command.text for command in history) or "(empty)", language=None)


def render_settings_page(service: LedgerService):
    """Connection status and user registration."""
    st.title("⚙️ Settings")

    from bbucks.config import validate_all_settings

    status = validate_all_settings()

    if status.get("ledger_storage", False):
        st.success("✅ Ledger file - Configured")
    else:
        st.warning("⚠️ Ledger file - Not configured, using memory (set BBUCKS_LEDGER_PATH)")

    if not status.get("ledger", False):
        st.error(f"❌ Ledger settings - {status.get('ledger_error', 'invalid')}")

    st.markdown("---")
    st.markdown("### Add User")

    new_user = st.text_input("User name", placeholder="e.g., alice")
    if st.button("➕ Add User") and new_user:
        try:
            run_async(service.register_user(new_user.strip()))
            st.success(f"Added {new_user}")
        except LedgerError as e:
            st.error(f"Could not add user: {e}")


if __name__ == "__main__":
    main()
