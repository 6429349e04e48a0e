"""Main.py: Poll feeds from the command line and log each update."""

import argparse
import logging
import time

from pollster.config.settings import FEED_SERVICE_URL, config
from pollster.models.document import Document
from pollster.models.query import Query
from pollster.models.subscriber import CallbackSubscriber
from pollster.scheduler.pollster import Pollster
from pollster.sources.http_feed_source import HttpFeedSource
from pollster.utils.logger import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Poll feeds and log every update.")
    parser.add_argument("feed_ids", nargs="+", help="Ids of the feeds to follow")
    parser.add_argument("--url", default=FEED_SERVICE_URL,
                        help=f"Base url of the feed service, defaults to {FEED_SERVICE_URL}")
    parser.add_argument("--tick", type=float, default=config["tick_seconds"],
                        help="Seconds between dispatch ticks")
    parser.add_argument("--log", dest="log_level", default="INFO", help="Log level (INFO or DEBUG)")
    return parser


def log_update(document: Document, query: Query) -> None:
    logger.info(
        f"[MAIN]: Update for {query.feed_id}: latest entry {document.latest_entry_id()} "
        f"at {document.latest_entry_updated() or document.updated()}",
    )


def main(argv: list[str] | None = None) -> None:
    """
    Run the pollster against a feed service.

    Subscribes to every feed id given and polls until interrupted.
    """
    args = build_parser().parse_args(argv)
    logger.setLevel(logging.DEBUG if args.log_level == "DEBUG" else logging.INFO)

    subscriber = CallbackSubscriber(log_update, name="log_update")
    with Pollster(HttpFeedSource(args.url), tick_seconds=args.tick) as pollster:
        for feed_id in args.feed_ids:
            pollster.subscribe(Query(feed_id=feed_id), subscriber)
        logger.info(f"[MAIN]: Following {', '.join(args.feed_ids)} at {args.url}")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("[MAIN]: Interrupted, shutting down")
        pollster.unsubscribe(subscriber)


if __name__ == "__main__":
    main()
