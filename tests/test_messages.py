"""Tests for the page strings."""

import pytest

from spreadsheet_viewer.messages import MESSAGES, message, page_strings


def test_languages_share_keys() -> None:
    assert set(MESSAGES["fr"]) == set(MESSAGES["en"])


def test_unsupported_format_in_french() -> None:
    assert message("unsupported_format") == (
        "Format non supporté. Utilisez .xlsx, .xls, .csv ou .ods"
    )


def test_placeholders_filled() -> None:
    assert message("footer", rows=2, columns=3) == "2 ligne(s) • 3 colonne(s)"
    assert message("loading", "en", file_name="a.csv") == "Loading a.csv…"


def test_unknown_language_falls_back_to_french() -> None:
    assert message("new_file", "de") == "Nouveau fichier"
    assert page_strings("de") == MESSAGES["fr"]


def test_unknown_key() -> None:
    with pytest.raises(KeyError):
        message("missing")
