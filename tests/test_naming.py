"""
Tests for output folder naming.
"""

from pathlib import Path

import pytest

from drgen.core.models.record import DecisionRecord
from drgen.core.services import naming
from drgen.core.services.naming import (
    decision_folder_name,
    decision_short_id,
    find_available_name,
    safe_date_prefix,
    sanitize_path_segment,
)


class TestSanitize:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Use Postgres", "Use-Postgres"),
            ("  a   b  ", "a-b"),
            ("a/b\\c", "a-b-c"),
            ('what? "really": <yes>|*', "what-really-yes"),
            ("tab\there", "tab-here"),
            ("ctrl\x00\x07x", "ctrlx"),
            ("--a--b--", "a-b"),
            ("決定 事項", "決定-事項"),
            ("ＡＢＣ", "ABC"),
        ],
    )
    def test_cases(self, raw, expected):
        assert sanitize_path_segment(raw) == expected


class TestDatePrefix:
    def test_valid(self):
        assert safe_date_prefix("2026-01-02") == "2026-01-02"
        assert safe_date_prefix(" 2026-01-02 ") == "2026-01-02"

    @pytest.mark.parametrize("value", [None, "", "Jan 2", "2026/01/02", "2026-1-2"])
    def test_undated(self, value):
        assert safe_date_prefix(value) == "undated"


class TestFolderName:
    def test_shape(self, record: DecisionRecord):
        name = decision_folder_name(record)
        date, slug, short_id = name.split("__")
        assert date == "2026-01-02"
        assert slug == "Use-Postgres"
        assert short_id == decision_short_id(record)
        assert len(short_id) == 8

    def test_id_is_deterministic(self):
        a = DecisionRecord(title="T", date="2026-01-02", decider="x")
        b = DecisionRecord(title="T", date="2026-01-02", decider="x", why="different")
        assert decision_short_id(a) == decision_short_id(b)

    def test_id_depends_on_identity(self):
        a = DecisionRecord(title="T", date="2026-01-02")
        b = DecisionRecord(title="T", date="2026-01-03")
        assert decision_short_id(a) != decision_short_id(b)

    def test_slug_fallback(self):
        name = decision_folder_name(DecisionRecord(title="???"))
        assert name.startswith("undated__decision__")

    def test_slug_is_clipped(self):
        name = decision_folder_name(DecisionRecord(title="x" * 200))
        assert len(name.split("__")[1]) == naming.MAX_SLUG_LENGTH


class TestFindAvailableName:
    def test_free_name_unchanged(self, tmp_path: Path):
        assert find_available_name([tmp_path], "d") == "d"

    def test_suffix_starts_at_two(self, tmp_path: Path):
        (tmp_path / "d").mkdir()
        (tmp_path / "d__2").mkdir()
        assert find_available_name([tmp_path], "d") == "d__3"

    def test_checks_every_base(self, tmp_path: Path):
        a, b = tmp_path / "in", tmp_path / "out"
        a.mkdir()
        b.mkdir()
        (a / "d").mkdir()
        (b / "d__2").mkdir()
        assert find_available_name([a, b], "d") == "d__3"

    def test_missing_base_is_fine(self, tmp_path: Path):
        assert find_available_name([tmp_path / "absent"], "d") == "d"

    def test_exhausted(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(naming, "MAX_SUFFIX", 3)
        for name in ("d", "d__2"):
            (tmp_path / name).mkdir()
        with pytest.raises(RuntimeError):
            find_available_name([tmp_path], "d")
