import pytest

from lectio.types import Entry, Passage, PassageSlot, classify_label


@pytest.mark.parametrize(
    "label, slot",
    [
        ("Reading I", PassageSlot.READING_1),
        ("Reading 1", PassageSlot.READING_1),
        ("Reading\u00a01", PassageSlot.READING_1),
        ("Reading&nbsp;1", PassageSlot.READING_1),
        ("Reading II", PassageSlot.READING_2),
        ("  reading 2 ", PassageSlot.READING_2),
        ("Responsorial Psalm", PassageSlot.PSALM),
        ("Responsorial\n  Psalm", PassageSlot.PSALM),
        ("Gospel", PassageSlot.GOSPEL),
        ("Alleluia", PassageSlot.ALLELUIA),
        ("Alleluia See", PassageSlot.ALLELUIA),
        ("Verse Before the Gospel", PassageSlot.ALLELUIA),
    ],
)
def test_classify_label_accepts_known_synonyms(label, slot):
    assert classify_label(label) is slot


@pytest.mark.parametrize("label", ["Sequence", "Prayer of the Faithful", "", "Reading III"])
def test_classify_label_rejects_unknown_labels(label):
    assert classify_label(label) is None


def test_only_second_reading_is_optional():
    assert [slot for slot in PassageSlot if not slot.required] == [PassageSlot.READING_2]


def test_db_values_round_trip():
    for slot in PassageSlot:
        assert PassageSlot.from_db_value(slot.db_value) is slot
    with pytest.raises(ValueError):
        PassageSlot.from_db_value("homily")


def test_passages_skips_missing_second_reading(make_entry):
    entry = make_entry("070224", second_reading=False)
    slots = [slot for slot, _ in entry.passages()]
    assert PassageSlot.READING_2 not in slots
    assert len(slots) == 4
    assert entry.passage(PassageSlot.READING_2) is None


def test_entries_compare_by_value(make_entry):
    assert make_entry("070224") == make_entry("070224")
    assert make_entry("070224") != make_entry("070224", second_reading=False)
    assert isinstance(make_entry("070224").gospel, Passage)
    assert isinstance(make_entry("070224"), Entry)
