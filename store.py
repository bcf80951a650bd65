"""Hypothesis Digest – append-only CSV record store.

The CSV file is the only durable state, and its schema has changed in place
more than once, so ``load`` accepts every layout it has ever had:

* a header row naming some or all of :data:`COLUMNS`, in any order;
* the header-less legacy layout :data:`LEGACY_COLUMNS`.
"""

import csv
import io
import logging
import os
import threading
from dataclasses import asdict, dataclass
from datetime import date
from urllib.parse import urlparse

from config import DATE_FORMAT, DEFAULT_WEIGHTS
from ranking import clamp_rating, infer_category, score, to_number

logger = logging.getLogger(__name__)

COLUMNS = [
    "Date", "Section", "Source", "Category", "Idea",
    "Ease", "Potential", "Score", "Link", "Rationale",
]
LEGACY_COLUMNS = ["Section", "Source", "Idea", "Ease", "Potential", "Link"]

_BOM = "\ufeff"
_COLUMN_KEYS = {c.lower(): c for c in COLUMNS}


@dataclass(frozen=True)
class HypothesisRecord:
    date: str = ""
    section: str = ""
    source: str = ""
    category: str = ""
    idea: str = ""
    ease: float = 0
    potential: float = 0
    score: float = 0
    link: str = ""
    rationale: str = ""

    @property
    def key(self):
        return dedup_key(self.section, self.idea)

    def get(self, column):
        """Value for a canonical column name (``"Idea"`` -> ``self.idea``)."""
        return getattr(self, column.lower())

    def to_dict(self):
        return asdict(self)


def dedup_key(section, idea):
    """Normalised ``section|idea`` identity of a record."""
    return f"{str(section or '').strip()}|{str(idea or '').strip()}".lower()


# ── Parsing helpers ──────────────────────────────────────────────────────────

def parse_rows(text):
    """Split CSV text into rows, skipping blank lines.

    Quoted cells may hold commas, line breaks and doubled quotes.  A
    ``csv.Error`` part-way through keeps whatever was read before it.
    """
    rows = []
    reader = csv.reader(io.StringIO(text.replace("\x00", ""), newline=""))
    try:
        for row in reader:
            if any(cell.strip() for cell in row):
                rows.append(row)
    except csv.Error as exc:
        logger.warning("CSV parse stopped at line %d: %s", reader.line_num, exc)
    return rows


def _norm(cell):
    return cell.replace(_BOM, "").strip().lower()


def _is_number(cell):
    try:
        float(cell.strip())
    except ValueError:
        return False
    return True


def _is_url(cell):
    parsed = urlparse(cell.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _header_columns(row):
    """Map a header row to canonical names, or None if it isn't a header."""
    columns = [_COLUMN_KEYS.get(_norm(cell)) for cell in row]
    if any(columns):
        return columns
    return None


def _is_legacy(rows):
    width = len(LEGACY_COLUMNS)
    if any(len(row) != width for row in rows):
        return False

    def looks_legacy(row):
        return _is_number(row[3]) and _is_number(row[4]) and _is_url(row[5])

    first = rows[0]
    if not (_is_number(first[3]) and _is_number(first[4])):
        return False
    hits = sum(1 for row in rows if looks_legacy(row))
    return hits * 2 > len(rows)


def _format_number(value):
    value = to_number(value)
    if isinstance(value, int):
        return str(value)
    return f"{value:g}"


class RecordStore:
    """Hypothesis records in a delimited flat file.

    ``weights`` computes scores for rows that don't carry one; ``today``
    returns the date stamp given to upgraded legacy rows.
    """

    def __init__(self, path, weights=DEFAULT_WEIGHTS, date_format=DATE_FORMAT,
                 today=None):
        self.path = path
        self.weights = weights
        self.date_format = date_format
        self._today = today or date.today
        self.lock = threading.Lock()

    # ── Reading ──────────────────────────────────────────────────────────
    def _read_rows(self):
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8-sig", errors="replace",
                  newline="") as fh:
            return parse_rows(fh.read())

    def _layout(self, rows):
        """Column names per position for the file's rows.

        Returns ``(columns, has_header)``.
        """
        header = _header_columns(rows[0])
        if header is not None:
            return header, True
        if _is_legacy(rows):
            return list(LEGACY_COLUMNS), False
        logger.warning(
            "Unrecognised header in %s: %r – reading with defaults",
            self.path, rows[0],
        )
        return [None] * len(rows[0]), True

    def load(self):
        rows = self._read_rows()
        if not rows:
            return []
        columns, has_header = self._layout(rows)
        return self._records(rows, columns, has_header)

    def _records(self, rows, columns, has_header):
        if not has_header:
            logger.info("Reading legacy header-less layout from %s", self.path)
        body = rows[1:] if has_header else rows
        return [self._to_record(columns, row, not has_header) for row in body]

    def _to_record(self, columns, row, legacy):
        values = {}
        for name, cell in zip(columns, row):
            if name is not None:
                values[name] = cell

        ease = clamp_rating(values.get("Ease"))
        potential = clamp_rating(values.get("Potential"))
        idea = values.get("Idea", "")
        raw_score = values.get("Score", "")
        if raw_score.strip():
            record_score = to_number(raw_score)
        else:
            record_score = score(ease, potential, self.weights)

        if legacy:
            category = infer_category(idea)
            stamped = self._today().strftime(self.date_format)
        else:
            category = values.get("Category", "")
            stamped = values.get("Date", "")

        return HypothesisRecord(
            date=stamped,
            section=values.get("Section", ""),
            source=values.get("Source", ""),
            category=category,
            idea=idea,
            ease=ease,
            potential=potential,
            score=record_score,
            link=values.get("Link", ""),
            rationale=values.get("Rationale", ""),
        )

    # ── Writing ──────────────────────────────────────────────────────────
    def append(self, records):
        """Append ``records``; the header is written only for a new file.

        Rows go out in the existing header's column order when that header
        names every canonical column.  A legacy, partial or unrecognised file
        is first upgraded to the canonical layout so no field is dropped.
        I/O errors propagate.
        """
        records = list(records)
        if not records:
            return
        with self.lock:
            rows = self._read_rows()
            if not rows:
                self._write(records, COLUMNS, mode="w", header=True)
            else:
                columns, has_header = self._layout(rows)
                if has_header and set(COLUMNS) <= set(columns):
                    self._ensure_trailing_newline()
                    self._write(records, columns, mode="a", header=False)
                else:
                    logger.info("Upgrading %s to the canonical layout", self.path)
                    existing = self._records(rows, columns, has_header)
                    self._write(existing + records, COLUMNS, mode="w", header=True)
        logger.debug("Appended %d records to %s", len(records), self.path)

    def rewrite(self, records):
        """Replace the whole file with ``records`` in canonical layout."""
        records = list(records)
        with self.lock:
            self._write(records, COLUMNS, mode="w", header=True)
        logger.info("Rewrote %s with %d records", self.path, len(records))

    def _ensure_trailing_newline(self):
        with open(self.path, "rb+") as fh:
            fh.seek(0, os.SEEK_END)
            if fh.tell() == 0:
                return
            fh.seek(-1, os.SEEK_END)
            if fh.read(1) not in (b"\n", b"\r"):
                fh.write(b"\n")

    def _write(self, records, columns, mode, header):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, mode, encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            if header:
                writer.writerow(columns)
            for record in records:
                writer.writerow([self._cell(record, name) for name in columns])

    @staticmethod
    def _cell(record, column):
        if column is None:
            return ""
        value = record.get(column)
        if column in ("Ease", "Potential", "Score"):
            return _format_number(value)
        return value
