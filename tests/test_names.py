from __future__ import annotations

import pytest

from authsvc.domain.services.names import join_full_name, split_full_name


@pytest.mark.parametrize(
    ("full_name", "expected"),
    [
        ("Mary Ann Evans", ("Mary", "Ann Evans")),
        ("Mary Ann  Evans", ("Mary", "Ann Evans")),
        ("  Mary\tAnn Evans ", ("Mary", "Ann Evans")),
        ("Cher", ("Cher", "")),
        ("  ", ("", "")),
        ("", ("", "")),
    ],
)
def test_split_full_name_collapses_whitespace(full_name, expected):
    assert split_full_name(full_name) == expected


def test_join_full_name():
    assert join_full_name("Augusta", "King") == "Augusta King"
    assert join_full_name("Cher", "") == "Cher"
