"""
Command-line entry point for the lead qualification bot.

Usage:
    python -m console.main chat --name "Asha" --phone 9876543210
    python -m console.main reclassify --lead-id <id>
    python -m console.main export --out leads.csv
"""

import argparse
import asyncio
import logging
import sys

from api.flows.engine import ConversationError
from api.services import get_services, initialize_services
from config.settings import get_settings
from lead_scoring.export import write_leads_csv

logger = logging.getLogger(__name__)


async def _start_services():
    settings = get_settings()
    session_factory = None
    if settings.session_store.lower() == "database":
        from database.session import init_db
        session_factory = await init_db(settings.resolved_database_url)
    initialize_services(session_factory)
    return session_factory


async def _stop_services(session_factory):
    if session_factory is not None:
        from database.session import close_db
        await close_db()


async def run_chat(name: str, phone: str, source: str):
    """Interactive qualification conversation in the terminal."""
    engine = get_services().engine
    lead, _, opening = await engine.start_conversation(name=name, phone=phone, source=source)
    for text in opening:
        print(f"Bot: {text}")

    while True:
        try:
            reply = await asyncio.to_thread(input, "You: ")
        except EOFError:
            print()
            logger.info(f"Input closed; lead {lead.id} left at its current step")
            return

        try:
            result = await engine.advance_conversation(lead.id, reply)
        except ConversationError as e:
            print(f"Bot: {e}")
            continue

        for text in result.bot_messages:
            print(f"Bot: {text}")

        if result.is_complete:
            lead = await engine.get_lead(lead.id)
            print(f"\nLead {lead.id}: {lead.classification.value} (score: {lead.score})")
            return


async def run_reclassify(lead_id: str):
    lead = await get_services().engine.reclassify(lead_id)
    print(f"Lead {lead.id}: {lead.classification.value} (score: {lead.score})")


async def run_export(out: str):
    leads = await get_services().engine.list_leads()
    with open(out, "w", encoding="utf-8", newline="") as f:
        count = write_leads_csv(leads, f)
    logger.info(f"Exported {count} leads to {out}")


async def _run(args) -> int:
    session_factory = await _start_services()
    try:
        if args.command == "chat":
            await run_chat(args.name, args.phone, args.source)
        elif args.command == "reclassify":
            await run_reclassify(args.lead_id)
        elif args.command == "export":
            await run_export(args.out)
    except ConversationError as e:
        logger.error(str(e))
        return 1
    finally:
        await _stop_services(session_factory)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Lead Qualification Bot")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat_parser = subparsers.add_parser("chat", help="Qualify a lead interactively")
    chat_parser.add_argument("--name", required=True, help="Lead name")
    chat_parser.add_argument("--phone", required=True, help="Lead phone number")
    chat_parser.add_argument("--source", default="Console", help="Lead source")

    reclassify_parser = subparsers.add_parser("reclassify", help="Classify a finished lead again")
    reclassify_parser.add_argument("--lead-id", required=True, help="Lead id")

    export_parser = subparsers.add_parser("export", help="Export leads as CSV")
    export_parser.add_argument("--out", default="leads.csv", help="Output CSV path")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
