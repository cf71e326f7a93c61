"""Main entry point for the MESH archive feed."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

from .consumer import ArchiveClient, FeedConsumer
from .consumer.render import render_error, render_post
from .feed import UpstreamError, parse_limit
from .utils.config import Settings, get_settings
from .webapp import create_aggregator, create_app, create_http_client, page_payload

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )

    # Suppress noisy HTTP request logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def run_server(settings: Settings, host: Optional[str], port: Optional[int]) -> int:
    import uvicorn

    host = host or settings.host
    port = port or settings.port
    logger.info("archive_server_starting", host=host, port=port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


async def run_fetch(settings: Settings, limit: Optional[str], cursor: Optional[str]) -> int:
    """Run one aggregation in-process and print the page."""
    async with create_http_client(settings) as client:
        aggregator = create_aggregator(settings, client)
        try:
            page = await aggregator.fetch_page(parse_limit(limit), cursor)
        except UpstreamError as exc:
            print(json.dumps({"error": exc.message, "details": exc.details}, indent=2, ensure_ascii=False))
            return 1

    print(json.dumps(page_payload(page), indent=2, ensure_ascii=False))
    return 0


async def run_browse(settings: Settings, url: Optional[str], page_size: Optional[int]) -> int:
    """Drive the feed consumer interactively against a running server."""
    async with ArchiveClient(url or settings.archive_url, timeout=settings.request_timeout_seconds) as client:
        consumer = FeedConsumer(client.fetch_page, page_size=page_size or settings.page_size)
        shown = 0

        await consumer.mount()
        while True:
            for post in consumer.posts[shown:]:
                print(render_post(post))
                print("-" * 60)
            shown = len(consumer.posts)

            if consumer.last_error:
                print(render_error(consumer.last_error, consumer.fallback_url))
            elif not consumer.has_more:
                print("That's everything for now." if consumer.posts else "Archive is warming up. Check back soon.")

            command = (await asyncio.to_thread(input, "[Enter] more  [r] retry  [q] quit > ")).strip().lower()
            if command == "q":
                return 0
            if command == "r":
                await consumer.retry()
            else:
                await consumer.on_proximity()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="MESH archive - aggregated #meshArchive feed from Bluesky search providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  meshfeed serve                     # Start the archive HTTP server
  meshfeed serve --port 9000
  meshfeed fetch --limit 10          # Fetch one page in-process
  meshfeed fetch --cursor <cursor>
  meshfeed browse                    # Scroll the feed from a running server
        """,
    )

    parser.add_argument(
        "mode",
        choices=["serve", "fetch", "browse"],
        default="serve",
        nargs="?",
        help="Operation mode (default: serve)",
    )

    # Serve mode arguments
    parser.add_argument("--host", type=str, help="Bind host (serve mode)")
    parser.add_argument("--port", type=int, help="Bind port (serve mode)")

    # Fetch mode arguments
    parser.add_argument("--limit", type=str, help="Page size, clamped to 1-50 (fetch mode)")
    parser.add_argument("--cursor", type=str, help="Continuation cursor (fetch mode)")

    # Browse mode arguments
    parser.add_argument("--url", type=str, help="Archive endpoint URL (browse mode)")
    parser.add_argument("--page-size", type=int, help="Posts per page (browse mode)")

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.mode == "fetch":
        return asyncio.run(run_fetch(settings, args.limit, args.cursor))

    if args.mode == "browse":
        try:
            return asyncio.run(run_browse(settings, args.url, args.page_size))
        except (KeyboardInterrupt, EOFError):
            return 0

    return run_server(settings, args.host, args.port)


if __name__ == "__main__":
    sys.exit(main())
