from datetime import date

import pytest
import requests

from config import DEFAULT_WEIGHTS
from store import HypothesisRecord, RecordStore

TODAY = date(2024, 5, 17)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def csv_path(tmp_path):
    return str(tmp_path / "hypotheses.csv")


@pytest.fixture
def store(csv_path):
    return RecordStore(csv_path, DEFAULT_WEIGHTS, "%d.%m.%Y", today=lambda: TODAY)


@pytest.fixture
def make_record():
    def _make(**fields):
        values = dict(
            date="17.05.2024",
            section="Massage",
            source="Massage Blog",
            category="Funnel",
            idea="Offer a free intro massage webinar",
            ease=8,
            potential=7,
            score=7.4,
            link="https://example.com/a",
            rationale="low cost, high interest",
        )
        values.update(fields)
        return HypothesisRecord(**values)
    return _make


class FakeResponse:
    def __init__(self, content=b"", status_code=200, json_data=None):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.content = content
        self.status_code = status_code
        self._json = json_data

    @property
    def text(self):
        return self.content.decode("utf-8")

    def json(self):
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def fake_response():
    return FakeResponse
