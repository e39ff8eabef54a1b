"""
Altegio Onboarding — Operator CLI

Inspect and repair onboarding sessions straight from the state store,
without going through the MCP server or the Altegio API.

Usage:
    # Start (or restart) a session
    python -m onboarding.cli start 123

    # Progress summary with the next step
    python -m onboarding.cli resume 123

    # Compact status
    python -m onboarding.cli status 123

    # Force the phase (checkpoints are untouched)
    python -m onboarding.cli set-phase 123 services

    # Raw state JSON
    python -m onboarding.cli show 123
"""

import argparse
import json
import sys

from onboarding.config import Settings, load_config
from onboarding.errors import OnboardingError
from onboarding.logging import SessionLogger, configure_logging
from onboarding.phases import parse_phase
from onboarding.reporting import render_phase_updated, render_resume, render_start, render_status
from onboarding.store import StateStore


def cmd_start(args, store: StateStore):
    events = SessionLogger().for_company(args.company_id)
    with store.lock(args.company_id):
        previous = store.load(args.company_id)
        if previous is not None:
            events.on_session_replaced(previous.phase.value, len(previous.checkpoints))
        state = store.start(args.company_id)
    events.on_session_started(state.phase.value)
    print(render_start(state))


def cmd_resume(args, store: StateStore):
    print(render_resume(store.require(args.company_id)))


def cmd_status(args, store: StateStore):
    print(render_status(store.require(args.company_id)))


def cmd_set_phase(args, store: StateStore):
    try:
        phase = parse_phase(args.phase)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    previous = store.require(args.company_id).phase
    state = store.update_phase(args.company_id, phase)
    SessionLogger().for_company(args.company_id).on_phase_updated(previous.value, phase.value)
    print(render_phase_updated(state, previous))


def cmd_show(args, store: StateStore):
    print(json.dumps(store.require(args.company_id).to_dict(), indent=2))


COMMANDS = {
    "start": cmd_start,
    "resume": cmd_resume,
    "status": cmd_status,
    "set-phase": cmd_set_phase,
    "show": cmd_show,
}


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Altegio Onboarding — session maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", default="onboarding.yaml",
        help="Base config YAML (default: onboarding.yaml, optional)",
    )
    parser.add_argument(
        "--state-dir", default="",
        help="Override the state directory (default: state.dir from config)",
    )

    subs = parser.add_subparsers(dest="command", help="Command")

    for name, help_text in (
        ("start", "Start a fresh session, replacing any existing one"),
        ("resume", "Show progress and the next step"),
        ("status", "Show phase and entity counts"),
        ("show", "Print the raw state JSON"),
    ):
        p = subs.add_parser(name, help=help_text)
        p.add_argument("company_id", type=int)

    phase_p = subs.add_parser("set-phase", help="Set the current phase")
    phase_p.add_argument("company_id", type=int)
    phase_p.add_argument("phase")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = Settings.from_config(load_config(base_path=args.config))
    configure_logging(level=settings.log_level)
    store = StateStore(args.state_dir or settings.state_dir, lock_sessions=settings.lock_sessions)

    try:
        COMMANDS[args.command](args, store)
    except OnboardingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
