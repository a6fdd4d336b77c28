from __future__ import annotations

import pytest

from hypoflow.services.sheets.columns import (
    column_range,
    header_range,
    index_to_letter,
    letter_to_index,
    quote_table_name,
    row_range,
    table_range,
)


@pytest.mark.parametrize(
    ("index", "letters"),
    [(0, "A"), (1, "B"), (25, "Z"), (26, "AA"), (27, "AB"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA")],
)
def test_index_to_letter_known_values(index: int, letters: str) -> None:
    assert index_to_letter(index) == letters
    assert letter_to_index(letters) == index


def test_column_names_round_trip_both_directions() -> None:
    names = [index_to_letter(index) for index in range(0, 1001)]
    assert len(set(names)) == len(names)
    assert all(name.isupper() and name.isalpha() for name in names)
    assert [letter_to_index(name) for name in names] == list(range(0, 1001))


def test_letter_to_index_accepts_lowercase() -> None:
    assert letter_to_index("aa") == 26


@pytest.mark.parametrize("bad", ["", "A1", "-", "Ä"])
def test_letter_to_index_rejects_non_letters(bad: str) -> None:
    with pytest.raises(ValueError):
        letter_to_index(bad)


def test_index_to_letter_rejects_negative() -> None:
    with pytest.raises(ValueError):
        index_to_letter(-1)


def test_ranges_quote_sheet_names_with_spaces() -> None:
    assert quote_table_name("Hypotheses") == "Hypotheses"
    assert quote_table_name("Q1 Hypotheses") == "'Q1 Hypotheses'"
    assert quote_table_name("Bob's") == "'Bob''s'"
    assert table_range("Q1 Hypotheses") == "'Q1 Hypotheses'"
    assert header_range("Hypotheses") == "Hypotheses!1:1"
    assert column_range("Hypotheses", 2) == "Hypotheses!C1:C"


def test_row_range_spans_full_width() -> None:
    assert row_range("Hypotheses", 5, 14) == "Hypotheses!A5:N5"
    assert row_range("Hypotheses", 2, 27) == "Hypotheses!A2:AA2"
    with pytest.raises(ValueError):
        row_range("Hypotheses", 0, 3)
