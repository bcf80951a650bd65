"""Hypothesis Digest – configuration."""

import os
from collections import OrderedDict
from dataclasses import dataclass, fields

# ── App identity ──────────────────────────────────────────────────────────────
APP_VERSION = "0.1.0"
USER_AGENT = "Mozilla/5.0 (DailyDigestBot)"

# ── Buckets / RSS feeds ──────────────────────────────────────────────────────
# Bucket title -> feed URLs.  The title is stored as the record's Section.
FEEDS = OrderedDict([
    ("Sales", [
        "https://blog.hubspot.com/sales/rss.xml",
        "https://thesalesblog.com/blog/rss.xml",
        "https://www.rainsalestraining.com/blog/rss.xml",
        "https://clickfunnels.com/blog/feed",
        "https://cxl.com/blog/feed/",
    ]),
    ("EdTech", [
        "https://feeds.feedburner.com/elearningindustry",
        "https://feeds.feedburner.com/theelearningcoach",
        "https://sellcoursesonline.com/feed",
        "https://www.shiftelearning.com/blog/rss.xml",
        "https://elearninguncovered.com/feed",
    ]),
    ("Massage", [
        "https://discovermassage.com.au/feed",
        "https://www.massagetherapyfoundation.org/feed/",
        "https://www.academyofclinicalmassage.com/feed/",
        "https://realbodywork.com/feed",
        "https://themtdc.com/feed",
    ]),
])

ITEMS_PER_BUCKET = 2
FRESH_HOURS = 72
FETCH_WORKERS = 3
HTTP_TIMEOUT_SECONDS = 15
MAX_ARTICLE_CHARS = 8000

# ── Scoring / thresholds ─────────────────────────────────────────────────────
MIN_POTENTIAL = 6
SCORE_WEIGHT_POTENTIAL = 0.6
SCORE_WEIGHT_EASE = 0.4

# ── LLM ──────────────────────────────────────────────────────────────────────
LLM_API_URL = "https://api.openai.com/v1/chat/completions"
LLM_MODEL = "gpt-4.1-mini"
LLM_TIMEOUT_SECONDS = 60
BUSINESS_CONTEXT = "an online massage school"
OUTPUT_LANGUAGE = "Russian"

# ── Telegram ─────────────────────────────────────────────────────────────────
NOTIFY_PER_SECTION = 10  # 0 = no cap

# ── Paths / output ───────────────────────────────────────────────────────────
DATA_DIR = os.path.abspath(".")
SITE_URL = "https://lommaks777.github.io/telegram-daily-research/"
DATE_FORMAT = "%d.%m.%Y"


@dataclass(frozen=True)
class ScoreWeights:
    potential: float
    ease: float


DEFAULT_WEIGHTS = ScoreWeights(SCORE_WEIGHT_POTENTIAL, SCORE_WEIGHT_EASE)


@dataclass(frozen=True)
class Settings:
    """Everything one run needs; built by :func:`load_settings`."""
    feeds: dict
    items_per_bucket: int
    fresh_hours: float
    fetch_workers: int
    http_timeout: float
    max_article_chars: int
    min_potential: float
    weights: ScoreWeights
    llm_api_key: str
    llm_api_url: str
    llm_model: str
    llm_timeout: float
    business_context: str
    output_language: str
    tg_bot_token: str
    tg_chat_id: str
    notify_per_section: int
    csv_path: str
    docs_dir: str
    site_url: str
    date_format: str


def _env_float(env, name, default):
    raw = env.get(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(env, name, default):
    return int(_env_float(env, name, default))


def load_settings(env=None, **overrides):
    """Snapshot the configuration into an immutable Settings value.

    ``env`` defaults to ``os.environ``; ``HD_*`` variables override the
    module defaults and keyword ``overrides`` win over both.
    """
    env = os.environ if env is None else env

    weights = ScoreWeights(
        potential=_env_float(env, "HD_WEIGHT_POTENTIAL", SCORE_WEIGHT_POTENTIAL),
        ease=_env_float(env, "HD_WEIGHT_EASE", SCORE_WEIGHT_EASE),
    )
    data_dir = env.get("HD_DATA_DIR", DATA_DIR)

    values = dict(
        feeds=OrderedDict((title, list(urls)) for title, urls in FEEDS.items()),
        items_per_bucket=_env_int(env, "HD_ITEMS_PER_BUCKET", ITEMS_PER_BUCKET),
        fresh_hours=_env_float(env, "HD_FRESH_HOURS", FRESH_HOURS),
        fetch_workers=FETCH_WORKERS,
        http_timeout=HTTP_TIMEOUT_SECONDS,
        max_article_chars=MAX_ARTICLE_CHARS,
        min_potential=_env_float(env, "HD_MIN_POTENTIAL", MIN_POTENTIAL),
        weights=weights,
        llm_api_key=env.get("OPENAI_API_KEY", ""),
        llm_api_url=env.get("HD_LLM_URL", LLM_API_URL),
        llm_model=env.get("HD_LLM_MODEL", LLM_MODEL),
        llm_timeout=LLM_TIMEOUT_SECONDS,
        business_context=env.get("HD_BUSINESS_CONTEXT", BUSINESS_CONTEXT),
        output_language=env.get("HD_OUTPUT_LANGUAGE", OUTPUT_LANGUAGE),
        tg_bot_token=env.get("TG_BOT_TOKEN", ""),
        tg_chat_id=env.get("TG_CHAT_ID", ""),
        notify_per_section=_env_int(env, "HD_NOTIFY_PER_SECTION", NOTIFY_PER_SECTION),
        csv_path=env.get("HD_CSV_PATH", os.path.join(data_dir, "hypotheses.csv")),
        docs_dir=env.get("HD_DOCS_DIR", os.path.join(data_dir, "docs")),
        site_url=env.get("HD_SITE_URL", SITE_URL),
        date_format=env.get("HD_DATE_FORMAT", DATE_FORMAT),
    )
    unknown = set(overrides) - {f.name for f in fields(Settings)}
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
    values.update(overrides)
    return Settings(**values)
