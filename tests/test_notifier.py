import pytest
import requests

import notifier
from notifier import format_digest, send_message, split_message


def test_format_digest_groups_and_escapes(make_record):
    grouped = [
        ("Massage", [
            make_record(idea="Low <b>idea</b>", score=5.0, source="A & B"),
            make_record(idea="Top idea", score=8.2, ease=6.5),
        ]),
        ("EdTech", []),
        ("Sales", [make_record(section="Sales", idea="Sales idea")]),
    ]

    text = format_digest("17.05.2024", grouped, site_url="https://site.test/")

    assert text.startswith("<b>Daily research: 17.05.2024</b>")
    assert "<b>Massage</b>" in text
    assert "EdTech" not in text
    assert text.index("Top idea") < text.index("Low &lt;b&gt;idea&lt;/b&gt;")
    assert "<code>A &amp; B</code>" in text
    assert "Ease: 6.5/10 · Potential: 7/10" in text
    assert text.index("<b>Massage</b>") < text.index("<b>Sales</b>")
    assert text.rstrip().endswith("https://site.test/")


def test_format_digest_caps_each_section(make_record):
    records = [make_record(idea=f"idea {i}", score=i) for i in range(5)]
    text = format_digest("d", [("Massage", records)], per_section=2)
    assert "idea 4" in text and "idea 3" in text
    assert "idea 2" not in text


def test_format_digest_empty_when_nothing_to_report():
    assert format_digest("d", [("Massage", []), ("Sales", [])]) == ""


def test_split_message_respects_limit():
    text = "\n".join(f"line {i:03d}" for i in range(100))
    parts = split_message(text, limit=50)
    assert all(len(p) <= 50 for p in parts)
    assert "\n".join(parts) == text


def test_split_message_hard_cuts_long_lines():
    parts = split_message("x" * 120, limit=50)
    assert [len(p) for p in parts] == [50, 50, 20]


def test_split_message_keeps_entities_and_tags_whole():
    text = "<b>" + "a&amp;b " * 20 + "</b>"
    parts = split_message(text, limit=50)
    assert all(len(p) <= 50 for p in parts)
    assert "".join(parts) == text
    for part in parts:
        assert part.count("&") == part.count("&amp;")
        assert part.count("<") == part.count(">")


@pytest.fixture
def posts(monkeypatch, fake_response):
    sent = []

    def fake_post(url, json=None, timeout=None):
        sent.append((url, json))
        return fake_response(json_data={"ok": True})

    monkeypatch.setattr(notifier.requests, "post", fake_post)
    return sent


def test_send_message_posts_html(posts):
    assert send_message("TOKEN", "42", "<b>hi</b>") is True
    [(url, payload)] = posts
    assert url == "https://api.telegram.org/botTOKEN/sendMessage"
    assert payload == {
        "chat_id": "42",
        "text": "<b>hi</b>",
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }


def test_send_message_splits_long_text(posts):
    text = "\n".join("y" * 100 for _ in range(100))
    assert send_message("TOKEN", "42", text) is True
    assert len(posts) == 3


@pytest.mark.parametrize("token, chat_id, text", [
    ("", "42", "hi"),
    ("TOKEN", "", "hi"),
    ("TOKEN", "42", ""),
])
def test_send_message_skips_without_credentials_or_text(posts, token, chat_id, text):
    assert send_message(token, chat_id, text) is False
    assert posts == []


def test_send_message_reports_failure(monkeypatch):
    def down(url, json=None, timeout=None):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(notifier.requests, "post", down)
    assert send_message("TOKEN", "42", "hi") is False
