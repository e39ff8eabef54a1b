"""
Onboarding MCP Server

Exposes the Altegio onboarding workflow as MCP tools: login, session
start/resume/status, the four batch phases, test bookings, preview and
rollback. Every tool returns a plain-text block; failures are raised and
surface to the client as tool errors.

The engine is built on first use from onboarding.yaml / ONBOARDING_*
environment variables (see onboarding.config).

Transports:
    stdio:  python -m mcp_servers.onboarding_server
    http:   python -m mcp_servers.onboarding_server --http --port 8300

Requires: pip install "mcp[cli]"
"""

from __future__ import annotations

import sys
from typing import Any

from mcp.server.fastmcp import FastMCP

from onboarding.bookings import DEFAULT_BOOKINGS
from onboarding.config import Settings, load_config
from onboarding.engine import OnboardingEngine
from onboarding.logging import SessionLogger, configure_logging, get_logger
from onboarding.store import StateStore
from providers.altegio import AltegioClient

DEFAULT_PORT = 8300

logger = get_logger("mcp")

mcp = FastMCP(
    name="altegio_onboarding",
    instructions=(
        "Onboards a new company onto Altegio: service categories, staff, "
        "services, clients and test bookings, with a persisted session per "
        "company that can be resumed at any time. Log in with altegio_login "
        "first, then call onboarding_start."
    ),
)

_engine: OnboardingEngine | None = None


# ─── Helpers ──────────────────────────────────────────────────────────

def build_engine(settings: Settings | None = None) -> OnboardingEngine:
    settings = settings or Settings.from_config(load_config())
    return OnboardingEngine(
        client=AltegioClient.from_settings(settings),
        store=StateStore(settings.state_dir, lock_sessions=settings.lock_sessions),
        session_logger=SessionLogger(),
    )


def get_engine() -> OnboardingEngine:
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def set_engine(engine: OnboardingEngine | None):
    """Replace the process-wide engine (None forces a rebuild on next use)."""
    global _engine
    _engine = engine


# ─── Auth ─────────────────────────────────────────────────────────────

@mcp.tool()
def altegio_login(email: str, password: str) -> str:
    """
    Log in to Altegio with a business account. The user token is saved
    locally and reused by later sessions.

    Args:
        email: Altegio account email
        password: Altegio account password
    """
    get_engine().client.login(email, password)
    return "Successfully logged in to Altegio. Credentials saved."


@mcp.tool()
def altegio_logout() -> str:
    """Forget the saved Altegio user token."""
    get_engine().client.logout()
    return "Logged out from Altegio. Saved credentials cleared."


# ─── Session ──────────────────────────────────────────────────────────

@mcp.tool()
def onboarding_start(company_id: int) -> str:
    """
    Start a new onboarding session for a company. Replaces any existing
    session for the same company.

    Args:
        company_id: Altegio company (location) id
    """
    return get_engine().start(company_id)


@mcp.tool()
def onboarding_resume(company_id: int) -> str:
    """Show what has been done so far and the next step to take."""
    return get_engine().resume(company_id)


@mcp.tool()
def onboarding_status(company_id: int) -> str:
    """Current phase and entity counts for a company's session."""
    return get_engine().status(company_id)


# ─── Batch phases ─────────────────────────────────────────────────────

@mcp.tool()
def onboarding_add_categories(company_id: int, categories: Any) -> str:
    """
    Create service categories.

    Args:
        company_id: Altegio company id
        categories: list of {title, api_id?, weight?}, a JSON array, or CSV text with a header row
    """
    return get_engine().add_categories_batch(company_id, categories)


@mcp.tool()
def onboarding_add_staff_batch(company_id: int, staff_data: Any) -> str:
    """
    Create staff members. Rows that fail are reported; the rest are kept.

    Args:
        company_id: Altegio company id
        staff_data: list of {name, specialization?, phone?, email?, position_id?},
            a JSON array, or CSV text with a header row
    """
    return get_engine().add_staff_batch(company_id, staff_data)


@mcp.tool()
def onboarding_add_services_batch(company_id: int, services_data: Any) -> str:
    """
    Create services. Rows without category_id use the first category
    created in this session.

    Args:
        company_id: Altegio company id
        services_data: list of {title, price_min, price_max?, duration (seconds), category_id?},
            a JSON array, or CSV text with a header row
    """
    return get_engine().add_services_batch(company_id, services_data)


@mcp.tool()
def onboarding_import_clients(company_id: int, clients_csv: Any) -> str:
    """
    Import clients. Each row needs a name and a phone or email.

    Args:
        company_id: Altegio company id
        clients_csv: CSV text with a header row (name,phone,email,surname,comment),
            a JSON array, or a list of objects
    """
    return get_engine().import_clients(company_id, clients_csv)


@mcp.tool()
def onboarding_create_test_bookings(company_id: int, count: int = DEFAULT_BOOKINGS) -> str:
    """
    Create test bookings spread over the session's staff and services,
    then mark onboarding complete.

    Args:
        company_id: Altegio company id
        count: number of bookings, 1-10 (default 5)
    """
    return get_engine().create_test_bookings(company_id, count)


# ─── Preview & rollback ───────────────────────────────────────────────

@mcp.tool()
def onboarding_preview_data(data_type: str, raw_input: str) -> str:
    """
    Parse and validate a payload without creating anything.

    Args:
        data_type: categories, staff, services or clients
        raw_input: CSV text with a header row, or a JSON array
    """
    return get_engine().preview_data(data_type, raw_input)


@mcp.tool()
def onboarding_rollback_phase(company_id: int, phase_name: str) -> str:
    """
    Roll back a phase. Staff and test bookings are deleted in Altegio;
    categories, services and clients cannot be deleted via the API and
    are only dropped from the session.

    Args:
        company_id: Altegio company id
        phase_name: staff, categories, services, clients or test_bookings
    """
    return get_engine().rollback_phase(company_id, phase_name)


# ─── Entrypoint ──────────────────────────────────────────────────────

def main(argv: list[str] | None = None):
    argv = sys.argv[1:] if argv is None else argv
    settings = Settings.from_config(load_config())
    configure_logging(level=settings.log_level)
    set_engine(build_engine(settings))

    if "--http" in argv:
        port = DEFAULT_PORT
        for i, arg in enumerate(argv):
            if arg == "--port" and i + 1 < len(argv):
                port = int(argv[i + 1])
        logger.info("Starting onboarding MCP server on port %d", port)
        mcp.settings.host = "0.0.0.0"
        mcp.settings.port = port
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
