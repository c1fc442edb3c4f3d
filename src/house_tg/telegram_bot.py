"""
Telegram bot that watches a rental listing feed and announces new listings.

Anyone who sends the bot a text message is subscribed. Every few minutes the
feed is fetched, listing ids that were never seen before are stored in
SQLite, and a link to each new listing is sent to every subscribed chat.
"""

import argparse
import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import List, Optional

from telegram import Bot, Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from .config import ConfigError, Settings
from .errors import StoreError, TransportError
from .feed import FeedClient
from .listener import UpdateListener
from .notifier import Notifier
from .poller import PollLoop
from .stores import RecipientStore, SeenListingStore

logger = logging.getLogger(__name__)

POLL_JOB_NAME = "poll_listings"


@dataclass
class Services:
    """The components shared by the poll job and the update handler."""

    seen: SeenListingStore
    recipients: RecipientStore
    feed: FeedClient
    notifier: Notifier
    listener: UpdateListener
    poller: PollLoop


def build_services(settings: Settings, bot: Bot) -> Services:
    """Create the stores, feed client, notifier, listener and poll loop."""
    seen = SeenListingStore(settings.houses_db)
    recipients = RecipientStore(settings.chats_db)
    feed = FeedClient(settings.feed_url, settings.feed_params)
    notifier = Notifier(bot, settings.listing_url_template)
    return Services(
        seen=seen,
        recipients=recipients,
        feed=feed,
        notifier=notifier,
        listener=UpdateListener(recipients),
        poller=PollLoop(
            feed,
            seen,
            recipients,
            notifier,
            silent_first_run=settings.silent_first_run,
        ),
    )


async def announce_startup(
    application: Application, *, services: Services, text: str
) -> None:
    """Let every known chat know the bot is running (post_init hook)."""
    try:
        recipients = services.recipients.list_all()
    except StoreError as e:
        logger.error("Cannot read recipients for startup message: %s", e)
        return

    result = await services.notifier.broadcast(recipients, text)
    for failure in result.failures:
        logger.warning("Startup message not delivered: %s", failure)
    logger.info("Startup message sent to %d/%d chat(s)", result.sent, len(recipients))


async def stop_poller(application: Application, *, services: Services) -> None:
    """post_shutdown hook: the job queue has already stopped by now."""
    services.poller.stop()


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log polling failures and handler exceptions; never re-raise."""
    error = TransportError.from_exception(context.error)
    if error is not None:
        logger.error("%s", error)
        return
    logger.error(
        "Unhandled error while processing update %s",
        update,
        exc_info=context.error,
    )


def build_application(settings: Settings) -> Application:
    """Wire the bot, handlers, startup hooks and the repeating poll job."""
    bot = Bot(settings.bot_token)
    services = build_services(settings, bot)

    app = (
        Application.builder()
        .bot(bot)
        .post_init(
            partial(announce_startup, services=services, text=settings.startup_message)
        )
        .post_shutdown(partial(stop_poller, services=services))
        .build()
    )

    app.add_handler(MessageHandler(filters.TEXT, services.listener.handle))
    app.add_error_handler(on_error)

    if app.job_queue is None:
        raise RuntimeError(
            "python-telegram-bot was installed without the job-queue extra"
        )
    app.job_queue.run_repeating(
        services.poller.run_job,
        interval=settings.poll_interval,
        first=0,
        name=POLL_JOB_NAME,
    )
    return app


def build_arg_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Announce new rental listings to Telegram chats"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="dotenv file to load (default: .env in the working directory)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Polling interval in seconds (overrides POLL_INTERVAL).",
    )
    parser.add_argument(
        "--silent-first-run",
        action="store_true",
        default=None,
        help="Store the listings found while the seen database is empty "
        "without sending notifications.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default INFO).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the bot."""
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, args.log_level),
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram.ext").setLevel(logging.INFO)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    try:
        settings = Settings.from_env(env_file=args.env_file).with_overrides(
            poll_interval=args.interval,
            silent_first_run=args.silent_first_run,
        )
    except ConfigError as e:
        raise SystemExit(f"Configuration error: {e}")

    try:
        app = build_application(settings)
    except StoreError as e:
        raise SystemExit(f"Cannot open databases: {e}")

    logging.info(
        "Bot starting polling every %ds (feed %s)...",
        settings.poll_interval,
        settings.feed_url,
    )
    app.run_polling(allowed_updates=Update.ALL_TYPES)
    logging.info("Bot stopped.")
