"""Hypothesis Digest – RSS feed collector and article text extraction."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import feedparser
import requests
from bs4 import BeautifulSoup
from readability import Document

from config import USER_AGENT

logger = logging.getLogger(__name__)

FEED_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/rss+xml,application/xml;q=0.9,*/*;q=0.8",
}
PAGE_HEADERS = {"User-Agent": USER_AGENT}


def fetch_feed(url, timeout=15):
    """Fetch and parse one feed.  Returns a list of item dicts.

    Each item: {title, link, source, published_at}; ``published_at`` is a
    naive UTC datetime or None.
    """
    resp = requests.get(url, headers=FEED_HEADERS, timeout=timeout)
    resp.raise_for_status()
    feed = feedparser.parse(resp.content)
    if feed.bozo and not feed.entries:
        raise ValueError(f"not a feed ({feed.get('bozo_exception')})")

    source = (feed.feed.get("title") or "").strip() or url
    items = []
    for entry in feed.entries:
        link = (entry.get("link") or "").strip()
        if not link:
            continue
        items.append(
            {
                "title": (entry.get("title") or "").strip() or "(untitled)",
                "link": link,
                "source": source,
                "published_at": _parse_date(entry),
            }
        )
    return items


def pick_latest(feed_urls, take=2, fresh_hours=72, timeout=15):
    """Newest ``take`` items across ``feed_urls``.

    Items older than ``fresh_hours`` are skipped unless nothing is fresh, in
    which case the newest stale items are used.
    """
    items = []
    for url in feed_urls:
        try:
            items.extend(fetch_feed(url, timeout=timeout))
        except Exception as exc:
            logger.warning("Failed to fetch feed '%s': %s", url, exc)

    cutoff = datetime.utcnow() - timedelta(hours=fresh_hours)
    fresh = [it for it in items if it["published_at"] and it["published_at"] >= cutoff]
    pool = fresh or items
    pool.sort(key=lambda it: it["published_at"] or datetime.min, reverse=True)
    return pool[:take]


def fetch_buckets(buckets, take=2, fresh_hours=72, timeout=15, max_workers=3):
    """Run :func:`pick_latest` for every bucket concurrently.

    ``buckets`` maps title -> feed URLs.  Returns ``[(title, items)]`` in
    the mapping's order.
    """
    titles = list(buckets)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(pick_latest, buckets[t], take, fresh_hours, timeout)
            for t in titles
        ]
        results = []
        for title, future in zip(titles, futures):
            try:
                items = future.result()
            except Exception as exc:
                logger.warning("Bucket '%s' failed: %s", title, exc)
                items = []
            logger.info("%s: picked %d items", title, len(items))
            results.append((title, items))
    return results


def fetch_readable(url, max_chars=8000, timeout=15):
    """Main text of the page at ``url``, or "" if it can't be fetched."""
    try:
        resp = requests.get(url, headers=PAGE_HEADERS, timeout=timeout)
        resp.raise_for_status()
        html = resp.text
    except Exception as exc:
        logger.warning("Failed to fetch article '%s': %s", url, exc)
        return ""

    text = ""
    try:
        summary = Document(html).summary()
        text = BeautifulSoup(summary, "html.parser").get_text(" ")
    except Exception as exc:
        logger.debug("Readability failed for '%s': %s", url, exc)
    if not text.strip():
        text = _strip_html(html)
    return _collapse(text)[:max_chars]


def _parse_date(entry):
    """Best-effort date extraction from a feed entry."""
    for field in ("published_parsed", "updated_parsed"):
        val = entry.get(field)
        if val:
            try:
                return datetime(*val[:6])
            except (TypeError, ValueError):
                continue
    return None


def _strip_html(html):
    """Visible text of raw HTML, without scripts and styles."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text(" ")


def _collapse(text):
    return re.sub(r"\s+", " ", text).strip()
