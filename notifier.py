"""Hypothesis Digest – Telegram notification."""

import logging

import requests

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
TELEGRAM_MAX = 4096


def _esc(text):
    return (
        str(text or "")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def _fmt(value):
    return f"{value:g}" if isinstance(value, float) else str(value)


def format_digest(date_str, grouped, site_url="", per_section=0):
    """Build the HTML message for ``grouped`` ([(section, records)]).

    Each section lists its best-scored records first, at most
    ``per_section`` of them (0 = all).  Returns "" if every section is empty.
    """
    blocks = []
    for title, records in grouped:
        if not records:
            continue
        ranked = sorted(records, key=lambda r: r.score, reverse=True)
        if per_section:
            ranked = ranked[:per_section]
        lines = [
            f"• {_esc(r.idea)}\n"
            f"<i>Category: {_esc(r.category)} · Ease: {_fmt(r.ease)}/10 · "
            f"Potential: {_fmt(r.potential)}/10</i>\n"
            f"<code>{_esc(r.source)}</code>"
            for r in ranked
        ]
        blocks.append(f"<b>{_esc(title)}</b>\n" + "\n\n".join(lines))
    if not blocks:
        return ""
    parts = [f"<b>Daily research: {_esc(date_str)}</b>", *blocks]
    if site_url:
        parts.append(f"\n🔗 Full table: {site_url}")
    return "\n\n".join(parts)


def split_message(text, limit=TELEGRAM_MAX):
    """Split ``text`` on line breaks into chunks no longer than ``limit``.

    A single over-long line is cut after its last space, ``>`` or ``;`` so
    no tag or entity is split; only text with none of those is cut hard.
    """
    parts = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = max(text.rfind(sep, 0, limit) for sep in (" ", ">", ";")) + 1
        if cut <= 0:
            cut = limit
        parts.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        parts.append(text)
    return parts


def send_message(token, chat_id, text, timeout=20):
    """Post ``text`` to the chat.  Returns True if every part was delivered."""
    if not (token and chat_id):
        logger.info("Telegram token or chat id not set – skipping notification.")
        return False
    if not text:
        logger.info("Nothing to send.")
        return False

    url = f"{TELEGRAM_API}/bot{token}/sendMessage"
    ok_all = True
    for part in split_message(text):
        try:
            resp = requests.post(
                url,
                json={
                    "chat_id": chat_id,
                    "text": part,
                    "parse_mode": "HTML",
                    "disable_web_page_preview": True,
                },
                timeout=timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Telegram send failed: %s", exc)
            ok_all = False
    return ok_all
