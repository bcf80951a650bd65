"""Hypothesis Digest – command-line entry point.

Run once (e.g. from a daily cron job or CI schedule):
    python app.py
Prune irrelevant rows from the store:
    python app.py --prune
"""

import argparse
import functools
import logging
import sys
from datetime import date

from collector import fetch_buckets, fetch_readable
from config import APP_VERSION, load_settings
from hypotheses import extract_hypotheses
from notifier import format_digest, send_message
from pipeline import group_by_section, ingest, prune
from publisher import write_site
from relevance import clean_view
from store import RecordStore

logger = logging.getLogger("hypothesis_digest")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="hypothesis-digest",
        description="Collect articles, extract business hypotheses, publish the digest.",
    )
    parser.add_argument("--prune", action="store_true",
                        help="rewrite the store keeping only relevant records, then publish")
    parser.add_argument("--no-notify", action="store_true",
                        help="skip the Telegram message")
    parser.add_argument("--csv", dest="csv_path", help="record store path")
    parser.add_argument("--docs", dest="docs_dir", help="static site output directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    return parser.parse_args(argv)


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
    )


# ── Run steps ────────────────────────────────────────────────────────────────

def run(settings, notify=True, today=None):
    """One scheduled run: collect, ingest, publish, notify."""
    today = today or date.today()
    store = RecordStore(settings.csv_path, settings.weights, settings.date_format,
                        today=lambda: today)

    buckets = fetch_buckets(
        settings.feeds,
        take=settings.items_per_bucket,
        fresh_hours=settings.fresh_hours,
        timeout=settings.http_timeout,
        max_workers=settings.fetch_workers,
    )
    extract_text = functools.partial(
        fetch_readable,
        max_chars=settings.max_article_chars,
        timeout=settings.http_timeout,
    )
    extract = functools.partial(
        extract_hypotheses,
        api_key=settings.llm_api_key,
        api_url=settings.llm_api_url,
        model=settings.llm_model,
        context=settings.business_context,
        language=settings.output_language,
        timeout=settings.llm_timeout,
    )

    result = ingest(
        store, buckets, extract, extract_text,
        min_potential=settings.min_potential,
        weights=settings.weights,
        today=today,
        date_format=settings.date_format,
    )
    publish(settings, result.clean, result.all, notify=notify, today=today)
    logger.info("Done. Appended: %d. Clean: %d. Total: %d.",
                len(result.appended), len(result.clean), len(result.all))
    return result


def run_prune(settings, today=None):
    """Maintenance: drop irrelevant rows from the store and republish."""
    store = RecordStore(settings.csv_path, settings.weights, settings.date_format)
    removed = prune(store)
    records = store.load()
    publish(settings, clean_view(records), records, notify=False, today=today)
    return removed


def publish(settings, clean, everything, notify=True, today=None):
    write_site(settings.docs_dir, clean, everything, settings.weights)
    if not notify:
        return False
    date_str = (today or date.today()).strftime(settings.date_format)
    text = format_digest(
        date_str,
        group_by_section(clean, list(settings.feeds)),
        site_url=settings.site_url,
        per_section=settings.notify_per_section,
    )
    return send_message(settings.tg_bot_token, settings.tg_chat_id, text)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    overrides = {}
    if args.csv_path:
        overrides["csv_path"] = args.csv_path
    if args.docs_dir:
        overrides["docs_dir"] = args.docs_dir

    try:
        settings = load_settings(**overrides)
        if args.prune:
            run_prune(settings)
        else:
            run(settings, notify=not args.no_notify)
    except OSError as exc:
        logger.error("Fatal I/O error: %s", exc, exc_info=True)
        return 1
    except Exception as exc:
        logger.error("Run failed: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
