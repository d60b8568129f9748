from barmap.common.models import BarRecord
from barmap.pipeline.identity import ensure_unique_ids, reconcile_with_store


def test_existing_id_reused_for_same_name():
    existing = [BarRecord(id="bar-042", name="Kvarnen", lat=59.3148, lng=18.0735)]
    records = [BarRecord(id="kvarnen", name="  kvarnen ")]

    matched = reconcile_with_store(records, existing)

    assert matched == 1
    assert records[0].id == "bar-042"


def test_explicit_id_matches_by_id():
    existing = [BarRecord(id="bar-7", name="Old Name", place_ref="ChIJ7")]
    records = [BarRecord(id="bar-7", name="New Name")]

    reconcile_with_store(records, existing)

    assert records[0].id == "bar-7"
    assert records[0].place_ref == "ChIJ7"


def test_enrichment_carried_forward_only_when_missing():
    existing = [
        BarRecord(
            id="kvarnen",
            name="Kvarnen",
            lat=59.3148,
            lng=18.0735,
            place_ref="ChIJkvarnen",
            photo_reference="photo-1",
            rating=4.4,
            tags=["dating", "chill"],
            moods=["group_friends"],
        )
    ]
    records = [BarRecord(id="kvarnen", name="Kvarnen", lat=59.3, lng=18.07, rating=4.1)]

    reconcile_with_store(records, existing)

    record = records[0]
    assert record.coordinates == (59.3, 18.07)
    assert record.rating == 4.1
    assert record.place_ref == "ChIJkvarnen"
    assert record.photo_reference == "photo-1"
    assert record.tags == ["dating", "chill"]
    assert record.moods == ["group_friends"]


def test_unmatched_records_left_alone():
    records = [BarRecord(id="new-bar", name="New Bar")]
    assert reconcile_with_store(records, [BarRecord(id="kvarnen", name="Kvarnen")]) == 0
    assert records[0].place_ref is None


def test_ensure_unique_ids_suffixes_duplicates():
    records = [BarRecord(id="bar", name="Bar"), BarRecord(id="bar", name="Bar"), BarRecord(id="bar", name="Bar")]

    ensure_unique_ids(records)

    assert [record.id for record in records] == ["bar", "bar-2", "bar-3"]


def test_explicit_id_does_not_borrow_enrichment_by_name():
    existing = [BarRecord(id="bar-1", name="Kvarnen", lat=59.3148, lng=18.0735, place_ref="ChIJkvarnen")]
    records = [BarRecord(id="bar-2", name="Kvarnen")]

    matched = reconcile_with_store(records, existing)

    assert matched == 0
    assert records[0].id == "bar-2"
    assert records[0].coordinates is None
    assert records[0].place_ref is None
