"""Hypothesis Digest – relevance filter for the public ("clean") view."""

import re

from ranking import CATEGORIES

# Domain terms; at least one must appear unless the category is already valid.
MUST_HAVE_ANY = [
    re.compile(p, re.IGNORECASE) for p in (
        r"массаж", r"школ", r"курс", r"студент", r"ученик", r"онлайн",
        r"вебинар", r"автовебинар", r"терап", r"клиент", r"запис",
        r"massag", r"school", r"course", r"student", r"learner", r"online",
        r"webinar", r"therap", r"client", r"booking",
    )
]

# Out-of-domain technical jargon.
REJECT_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\bsaas\b", r"\bkubernetes\b", r"\bmicroservice", r"\bapi gateway",
        r"\bdevops\b", r"\bcontainer", r"\bmicro-?frontend", r"\bk8s\b",
    )
]

LATIN_RE = re.compile(r"[A-Za-z]")
TARGET_SCRIPT_RE = re.compile(r"[А-Яа-яЁё]")
MAX_LATIN = 120
MIN_TARGET = 10

_CATEGORY_KEYS = {c.lower() for c in CATEGORIES}


def _text(value):
    return "" if value is None else str(value)


def is_likely_foreign(text):
    """Long Latin-only passages count as off-language; short loanwords do not."""
    text = _text(text)
    latin = len(LATIN_RE.findall(text))
    target = len(TARGET_SCRIPT_RE.findall(text))
    return latin > MAX_LATIN and target < MIN_TARGET


def contains_any(text, patterns):
    return any(p.search(text) for p in patterns)


def is_relevant(idea="", rationale="", section="", category=""):
    idea = _text(idea)
    if not idea.strip():
        return False

    category = _text(category)
    text = " ".join([idea, _text(rationale), _text(section), category]).strip()

    if is_likely_foreign(text):
        return False
    if contains_any(text, REJECT_PATTERNS):
        return False
    if category.strip().lower() in _CATEGORY_KEYS:
        return True
    return contains_any(text, MUST_HAVE_ANY)


def clean_view(records):
    """The subset of ``records`` that passes :func:`is_relevant`."""
    return [
        r for r in records
        if is_relevant(r.idea, r.rationale, r.section, r.category)
    ]
