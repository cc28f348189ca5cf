#!/usr/bin/env python3
import argparse
import logging
import sys
from typing import List, Optional

from scraperlib.config import DEFAULT_MAX_RETRIES, DEFAULT_MAX_WORKERS, DEFAULT_USER_AGENT, PaginationConfig, ScraperOptions
from scraperlib.engine import Scraper
from scraperlib.errors import ScraperError
from scraperlib.metrics import StatsLogger
from scraperlib.prometheus_exporter import PrometheusExporter
from scraperlib.storage import JsonlWriter


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch a page, or stream matching elements across paginated pages.")
    parser.add_argument("url", help="Page to scrape (page 1 when paginating).")
    parser.add_argument("--selector", default="", help="CSS selector of the elements to extract ('||' separates alternatives).")
    pagination = parser.add_mutually_exclusive_group()
    pagination.add_argument("--next-selector", default="", help="Selector of the next-page link (sequential pagination).")
    pagination.add_argument("--last-page-selector", default="", help="Selector holding the total page count (parallel pagination).")
    parser.add_argument("--page-pattern", default="", help="Page URL pattern, '::page::' is replaced by the page number.")
    parser.add_argument("--out", dest="output_path", default=None, help="Path to JSONL output file (default: stdout).")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header to send.")
    parser.add_argument("--allowed-domain", dest="allowed_domains", nargs="+", default=[], help="Only fetch these domains.")
    parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Attempts per page while rate limited.")
    parser.add_argument("--max-workers", type=int, default=DEFAULT_MAX_WORKERS, help="Concurrent page fetches in parallel pagination.")
    parser.add_argument("--sequential", action="store_true", help="Fetch counted pages one at a time.")
    parser.add_argument("--timeout", type=float, default=15.0, help="HTTP read timeout in seconds.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")
    parser.add_argument("--metrics-interval", type=float, default=0.0, help="Seconds between perf logs (0 to disable).")
    parser.add_argument("--prometheus-port", type=int, default=0, help="Serve Prometheus metrics on this port (0 to disable).")
    return parser.parse_args(argv)


def run(args: argparse.Namespace, scraper: Scraper) -> int:
    if not args.selector:
        sys.stdout.write(scraper.scrape_html(args.url))
        return 0

    config = PaginationConfig(
        next_page_selector=args.next_selector,
        last_page_selector=args.last_page_selector,
        next_page_url_pattern=args.page_pattern,
    )
    paginate = bool(config.next_page_selector or config.counted)
    failures = 0
    with JsonlWriter(args.output_path) as writer:
        if not paginate:
            for fragment in scraper.scrape_outer_html(args.url, args.selector):
                writer.write({"url": args.url, "data": fragment})
        else:
            with scraper.scrape_paginated(args.url, args.selector, config) as stream:
                for result in stream:
                    if result.ok:
                        writer.write({"url": result.url, "data": result.data})
                    else:
                        failures += 1
                        logging.error("%s", result.error)
                        writer.write({"url": result.url, "error": str(result.error)})
        logging.info("Wrote %d records, %d page errors", writer.records, failures)
    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )

    options = ScraperOptions(
        user_agent=args.user_agent,
        allowed_domains=tuple(d.lower() for d in args.allowed_domains),
        concurrent=not args.sequential,
        max_retries=max(1, args.max_retries),
        max_workers=max(1, args.max_workers),
        request_timeout=max(1.0, args.timeout),
    )
    scraper = Scraper(options)

    stats = None
    if args.metrics_interval > 0:
        stats = StatsLogger(scraper.metrics, args.metrics_interval, logging.info)
        stats.start()
    exporter = None
    if args.prometheus_port > 0:
        exporter = PrometheusExporter(scraper.metrics, port=args.prometheus_port)
        exporter.start()

    try:
        return run(args, scraper)
    except ScraperError as exc:
        logging.error("%s", exc)
        return 1
    finally:
        if stats:
            stats.stop()
        if exporter:
            exporter.stop()


if __name__ == "__main__":
    sys.exit(main())
