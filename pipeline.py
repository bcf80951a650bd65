"""Hypothesis Digest – ingest pipeline.

source items -> hypotheses -> scored records -> dedup -> relevance -> store
"""

import logging
from dataclasses import dataclass
from datetime import date

from config import DATE_FORMAT, DEFAULT_WEIGHTS
from ranking import clamp_rating, coerce_category, score
from relevance import clean_view, is_relevant
from store import HypothesisRecord

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    appended: list
    clean: list
    all: list


class Deduplicator:
    """Remembers every ``section|idea`` key seen so far.

    Seeded from the whole store, then updated as candidates are accepted so
    two identical candidates from one run can't both get through.
    """

    def __init__(self, records=()):
        self.seen = {r.key for r in records}

    def __contains__(self, record):
        return record.key in self.seen

    def accept(self, record):
        """Return True and remember ``record`` if its key is new."""
        key = record.key
        if key in self.seen:
            return False
        self.seen.add(key)
        return True


def _safe_text(extract_text, url):
    if extract_text is None or not url:
        return ""
    try:
        return extract_text(url) or ""
    except Exception as exc:
        logger.warning("Text extraction failed for %s: %s", url, exc)
        return ""


def _safe_hypotheses(extract_hypotheses, title, text):
    try:
        hyps = extract_hypotheses(title, text)
    except Exception as exc:
        logger.warning("Hypothesis extraction failed for '%s': %s", title, exc)
        return []
    if not isinstance(hyps, list):
        logger.warning("Hypothesis extraction for '%s' returned %s, not a list",
                       title, type(hyps).__name__)
        return []
    return hyps


def make_record(hyp, section, item, weights=DEFAULT_WEIGHTS, stamped=""):
    """Build a record from one untrusted model answer, or None if it has no idea."""
    if not isinstance(hyp, dict):
        return None
    idea = str(hyp.get("idea") or "").strip()
    if not idea:
        return None
    ease = clamp_rating(hyp.get("ease"))
    potential = clamp_rating(hyp.get("potential"))
    return HypothesisRecord(
        date=stamped,
        section=section,
        source=str(item.get("source") or ""),
        category=coerce_category(hyp.get("category"), idea),
        idea=idea,
        ease=ease,
        potential=potential,
        score=score(ease, potential, weights),
        link=str(item.get("link") or ""),
        rationale=str(hyp.get("rationale") or "").strip(),
    )


def build_section(title, items, extract_hypotheses, extract_text=None,
                  min_potential=6, weights=DEFAULT_WEIGHTS, today=None,
                  date_format=DATE_FORMAT):
    """Turn one bucket's source items into candidate records.

    ``extract_text(url)`` and ``extract_hypotheses(title, text)`` are the
    external collaborators; a failure in either counts as an empty result
    for that item.
    """
    stamped = (today or date.today()).strftime(date_format)
    out = []
    for item in items:
        text = _safe_text(extract_text, item.get("link"))
        hyps = _safe_hypotheses(extract_hypotheses, item.get("title", ""), text)
        kept = 0
        for hyp in hyps:
            if not isinstance(hyp, dict):
                continue
            if clamp_rating(hyp.get("potential")) < min_potential:
                continue
            record = make_record(hyp, title, item, weights, stamped)
            if record is not None:
                out.append(record)
                kept += 1
        logger.debug("%s: '%s' gave %d hypotheses, kept %d",
                     title, item.get("title", ""), len(hyps), kept)
    return out


def select_new(candidates, existing):
    """Candidates that are neither already stored nor irrelevant."""
    dedup = Deduplicator(existing)
    selected = []
    for record in candidates:
        if not dedup.accept(record):
            continue
        if is_relevant(record.idea, record.rationale, record.section,
                       record.category):
            selected.append(record)
    return selected


def ingest(store, buckets, extract_hypotheses, extract_text=None,
           min_potential=6, weights=DEFAULT_WEIGHTS, today=None,
           date_format=DATE_FORMAT):
    """Run every bucket through the pipeline and append the new records.

    ``buckets`` is a list of ``(title, items)`` pairs.  Store write errors
    propagate; everything else degrades to fewer records.
    """
    existing = store.load()

    candidates = []
    for title, items in buckets:
        section = build_section(
            title, items, extract_hypotheses, extract_text,
            min_potential=min_potential, weights=weights, today=today,
            date_format=date_format,
        )
        logger.info("%s: %d candidates from %d items", title, len(section), len(items))
        candidates.extend(section)

    to_append = select_new(candidates, existing)
    store.append(to_append)

    all_now = store.load()
    return IngestResult(appended=to_append, clean=clean_view(all_now), all=all_now)


def prune(store):
    """Rewrite the store keeping only relevant records.  Returns the removed count."""
    records = store.load()
    kept = clean_view(records)
    store.rewrite(kept)
    removed = len(records) - len(kept)
    logger.info("Pruned %d of %d records", removed, len(records))
    return removed


def group_by_section(records, titles):
    """``[(title, records)]`` in ``titles`` order; other sections are dropped."""
    return [(t, [r for r in records if r.section == t]) for t in titles]
