import argparse
import asyncio
import logging

from .app_factory import create_facade, initialize_app

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="CivicKey collection schedule runner.")
    parser.add_argument(
        "command",
        choices=["bot", "dashboard", "sync", "provision"],
        help="The command to execute.",
    )
    parser.add_argument(
        "municipality_id",
        nargs="?",
        help="Municipality to provision (provision command only).",
    )
    args = parser.parse_args()

    initialize_app()
    facade = create_facade()

    if args.command == "bot":
        from telegram_bot.bot import main as run_bot

        logger.info("Starting bot...")
        asyncio.run(run_bot(facade))
    elif args.command == "dashboard":
        from dashboard.app import run_dashboard

        logger.info("Starting dashboard...")
        run_dashboard(facade)
    elif args.command == "sync":
        changed = facade.sync_service.update_all_schedules()
        logger.info(f"Sync finished, {changed} schedule(s) changed.")
    elif args.command == "provision":
        if not args.municipality_id:
            parser.error("provision needs a municipality id")
        facade.editor_service.provision_municipality(args.municipality_id)


if __name__ == "__main__":
    main()
