import pytest

from pipeline import (
    Deduplicator,
    build_section,
    group_by_section,
    ingest,
    make_record as record_from_hypothesis,
    prune,
    select_new,
)

ITEM = {
    "title": "How to grow a massage school",
    "link": "https://example.com/article",
    "source": "Massage Blog",
    "published_at": None,
}

WEBINAR = {
    "idea": "Offer a free intro massage webinar",
    "category": "Funnel",
    "ease": 8,
    "potential": 7,
    "rationale": "low cost, high interest",
}


def fixed(hyps):
    def extract(title, text):
        return [dict(h) if isinstance(h, dict) else h for h in hyps]
    return extract


def test_build_section_builds_scored_records(today):
    seen = []

    def extract_text(url):
        seen.append(url)
        return "article body"

    def extract(title, text):
        assert (title, text) == (ITEM["title"], "article body")
        return [dict(WEBINAR)]

    [record] = build_section("Massage", [ITEM], extract, extract_text, today=today)

    assert seen == [ITEM["link"]]
    assert record.date == "17.05.2024"
    assert record.section == "Massage"
    assert record.source == "Massage Blog"
    assert record.category == "Funnel"
    assert record.idea == WEBINAR["idea"]
    assert record.ease == 8
    assert record.potential == 7
    assert record.score == pytest.approx(7.4)
    assert record.link == ITEM["link"]
    assert record.rationale == "low cost, high interest"


def test_build_section_drops_low_potential(today):
    hyps = [dict(WEBINAR, potential=4), dict(WEBINAR, idea="Second idea", potential=6)]
    records = build_section("Massage", [ITEM], fixed(hyps), min_potential=6, today=today)
    assert [r.idea for r in records] == ["Second idea"]


def test_build_section_coerces_untrusted_fields(today):
    hyps = [
        {"idea": "  Run a Facebook retargeting ad campaign  ", "category": "Marketing",
         "ease": "9", "potential": "15", "rationale": None},
        {"idea": "", "potential": 9},
        "not a dict",
        {"idea": "No numbers at all"},
    ]
    [record] = build_section("Sales", [ITEM], fixed(hyps), today=today)
    assert record.idea == "Run a Facebook retargeting ad campaign"
    assert record.category == "Ads"
    assert record.ease == 9
    assert record.potential == 10
    assert record.rationale == ""


def test_build_section_survives_collaborator_failures(today):
    def broken_text(url):
        raise RuntimeError("timeout")

    calls = []

    def flaky(title, text):
        calls.append(text)
        if len(calls) == 1:
            raise ValueError("bad JSON")
        return [dict(WEBINAR)]

    items = [ITEM, dict(ITEM, link="https://example.com/2")]
    records = build_section("Massage", items, flaky, broken_text, today=today)

    assert calls == ["", ""]
    assert len(records) == 1


def test_build_section_ignores_non_list_answers(today):
    assert build_section("Massage", [ITEM], lambda t, x: {"idea": "x"}, today=today) == []


def test_deduplicator_updates_within_a_run(make_record):
    existing = make_record(section="Massage", idea="Old idea")
    dedup = Deduplicator([existing])

    assert existing in dedup
    assert dedup.accept(make_record(section=" massage ", idea="OLD IDEA ")) is False
    assert dedup.accept(make_record(idea="New idea")) is True
    assert dedup.accept(make_record(idea="new idea")) is False


def test_select_new_applies_dedup_then_relevance(make_record):
    existing = [make_record(idea="Offer a free intro massage webinar")]
    candidates = [
        make_record(idea="Offer a free intro massage webinar"),
        make_record(idea="Move the course platform to Kubernetes"),
        make_record(idea="Online course for massage therapists"),
        make_record(idea="online course for massage therapists"),
    ]
    selected = select_new(candidates, existing)
    assert [r.idea for r in selected] == ["Online course for massage therapists"]


def test_ingest_scenario_single_record(store, today):
    result = ingest(store, [("Massage", [ITEM])], fixed([WEBINAR]), lambda url: "",
                    min_potential=6, today=today)

    assert len(result.appended) == 1
    [stored] = store.load()
    assert stored.score == pytest.approx(7.4)
    assert stored.idea == WEBINAR["idea"]
    assert result.all == [stored]
    assert result.clean == [stored]


def test_ingest_is_idempotent(store, today):
    buckets = [("Massage", [ITEM, dict(ITEM, link="https://example.com/2")])]
    ingest(store, buckets, fixed([WEBINAR]), today=today)
    result = ingest(store, buckets, fixed([WEBINAR]), today=today)

    assert result.appended == []
    keys = [r.key for r in store.load()]
    assert keys.count("massage|offer a free intro massage webinar") == 1


def test_ingest_into_partial_header_file_is_idempotent(store, csv_path, today):
    with open(csv_path, "w", encoding="utf-8") as fh:
        fh.write("Idea,Link,Potential\nOnline course bundle,https://x.io,8\n")

    for _ in range(3):
        ingest(store, [("Massage", [ITEM])], fixed([WEBINAR]), today=today)

    records = store.load()
    assert [r.idea for r in records] == ["Online course bundle", WEBINAR["idea"]]
    assert records[1].section == "Massage"
    assert records[1].rationale == WEBINAR["rationale"]


def test_ingest_same_idea_in_different_sections(store, today):
    buckets = [("Massage", [ITEM]), ("EdTech", [ITEM])]
    result = ingest(store, buckets, fixed([WEBINAR]), today=today)
    assert [r.section for r in result.appended] == ["Massage", "EdTech"]


def test_ingest_with_all_failures_keeps_existing_store(store, today, make_record):
    store.append([make_record()])

    def down(title, text):
        raise ConnectionError("offline")

    result = ingest(store, [("Massage", [ITEM]), ("Sales", [])], down, today=today)

    assert result.appended == []
    assert len(result.all) == 1
    assert len(result.clean) == 1


def test_ingest_propagates_store_write_errors(today):
    class ReadOnlyStore:
        def load(self):
            return []

        def append(self, records):
            raise PermissionError("read-only")

    with pytest.raises(PermissionError):
        ingest(ReadOnlyStore(), [("Massage", [ITEM])], fixed([WEBINAR]), today=today)


def test_prune_rewrites_only_relevant(store, make_record):
    store.append([
        make_record(),
        make_record(idea="Migrate the LMS to Kubernetes"),
        make_record(section="Sales", idea="Raise prices", category=""),
    ])
    assert prune(store) == 2
    assert [r.idea for r in store.load()] == ["Offer a free intro massage webinar"]


def test_make_record_rejects_missing_idea():
    assert record_from_hypothesis({"idea": "   "}, "Massage", ITEM) is None
    assert record_from_hypothesis(None, "Massage", ITEM) is None


def test_group_by_section_keeps_configured_order(make_record):
    a = make_record(section="Sales", idea="a")
    b = make_record(section="Massage", idea="b")
    c = make_record(section="Other", idea="c")
    grouped = group_by_section([a, b, c], ["Massage", "EdTech", "Sales"])
    assert grouped == [("Massage", [b]), ("EdTech", []), ("Sales", [a])]
