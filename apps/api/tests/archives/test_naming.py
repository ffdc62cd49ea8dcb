"""Tests for artifact and entry naming rules."""

from datetime import datetime, timezone

import pytest

from zipdrop.archives.naming import (
    base_name_for,
    is_artifact_name,
    make_artifact_name,
    normalise_entry_names,
)

FIXED_NOW = datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
FIXED_TOKEN = "0123456789abcdef"


class TestBaseNameFor:
    def test_single_file_uses_stem(self) -> None:
        assert base_name_for(["report.pdf"]) == "report"

    def test_single_file_with_several_dots(self) -> None:
        assert base_name_for(["backup.tar.gz"]) == "backup.tar"

    def test_single_file_drops_directories(self) -> None:
        assert base_name_for(["docs/q1/summary.txt"]) == "summary"
        assert base_name_for(["C:\\Users\\me\\photo.jpg"]) == "photo"

    def test_several_files_use_archive(self) -> None:
        assert base_name_for(["a.txt", "b.txt"]) == "archive"

    def test_no_files_use_archive(self) -> None:
        assert base_name_for([]) == "archive"

    def test_unsafe_characters_are_replaced(self) -> None:
        assert base_name_for(["my report (final).doc"]) == "my-report-final"

    def test_unusable_stem_falls_back(self) -> None:
        assert base_name_for(["???.txt"]) == "archive"

    def test_long_stem_is_truncated(self) -> None:
        assert len(base_name_for(["x" * 200 + ".txt"])) == 64


class TestMakeArtifactName:
    def test_deterministic_with_fixed_inputs(self) -> None:
        name = make_artifact_name("report", now=FIXED_NOW, token=FIXED_TOKEN)
        assert name == "report_20260304_050607_0123456789abcdef.zip"

    def test_generated_names_match_pattern(self) -> None:
        assert is_artifact_name(make_artifact_name("archive"))

    def test_generated_tokens_differ(self) -> None:
        assert make_artifact_name("a", now=FIXED_NOW) != make_artifact_name("a", now=FIXED_NOW)

    def test_base_name_is_sanitized(self) -> None:
        name = make_artifact_name("../../etc", now=FIXED_NOW, token=FIXED_TOKEN)
        assert "/" not in name
        assert is_artifact_name(name)


class TestIsArtifactName:
    @pytest.mark.parametrize(
        "value",
        [
            "archive_20260304_050607_0123456789abcdef.zip",
            "a.b-c_20260304_050607_ffffffffffffffff.zip",
        ],
    )
    def test_accepts_well_formed_names(self, value: str) -> None:
        assert is_artifact_name(value)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "archive_20260304_050607.zip",
            "archive_20260304_050607_0123456789ABCDEF.zip",
            "../archive_20260304_050607_0123456789abcdef.zip",
            "archive_20260304_050607_0123456789abcdef.zip.exe",
        ],
    )
    def test_rejects_malformed_names(self, value: str) -> None:
        assert not is_artifact_name(value)


class TestNormaliseEntryNames:
    def test_plain_names_pass_through(self) -> None:
        assert normalise_entry_names(["a.txt", "b.txt"]) == ["a.txt", "b.txt"]

    def test_directory_components_are_dropped(self) -> None:
        assert normalise_entry_names(["../../etc/passwd", "dir\\file.txt"]) == [
            "passwd",
            "file.txt",
        ]

    def test_duplicates_are_renamed_in_order(self) -> None:
        assert normalise_entry_names(["a.txt", "a.txt", "x/a.txt"]) == [
            "a.txt",
            "a (1).txt",
            "a (2).txt",
        ]

    def test_rename_skips_names_already_taken(self) -> None:
        assert normalise_entry_names(["a (1).txt", "a.txt", "a.txt"]) == [
            "a (1).txt",
            "a.txt",
            "a (2).txt",
        ]

    def test_duplicate_without_extension(self) -> None:
        assert normalise_entry_names(["README", "README"]) == ["README", "README (1)"]

    @pytest.mark.parametrize("value", ["", "   ", ".", "..", "dir/", "a/.."])
    def test_rejects_unusable_names(self, value: str) -> None:
        with pytest.raises(ValueError, match="Invalid file name"):
            normalise_entry_names([value])

    def test_rejects_null_byte(self) -> None:
        with pytest.raises(ValueError, match="null byte"):
            normalise_entry_names(["evil\x00.txt"])
