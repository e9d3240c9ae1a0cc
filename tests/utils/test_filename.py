"""Tests for filename utilities."""

from pathlib import Path

from parallel_downloader.utils.filename import filename_from_url, sanitize_filename, unique_paths


def test_sanitize_removes_invalid_characters():
    assert sanitize_filename('a<b>c:"d"/e|f?g*h') == "abcdefgh"


def test_sanitize_collapses_whitespace_and_strips_dots():
    assert sanitize_filename("  my   file.txt. ") == "my file.txt"


def test_sanitize_empty():
    assert sanitize_filename("") == ""


def test_filename_from_url_uses_last_segment():
    assert filename_from_url("https://example.com/files/archive.tar.gz?sig=abc") == "archive.tar.gz"


def test_filename_from_url_decodes_percent_escapes():
    assert filename_from_url("https://example.com/my%20report.pdf") == "my report.pdf"


def test_filename_from_url_trailing_slash():
    assert filename_from_url("https://example.com/releases/") == "releases"


def test_filename_from_url_without_path():
    assert filename_from_url("https://example.com") == "download"


def test_unique_paths_suffixes_duplicates():
    paths = unique_paths(Path("out"), [
        "https://a.example.com/data.csv",
        "https://b.example.com/data.csv",
        "https://c.example.com/other.csv",
        "https://d.example.com/data.csv",
    ])

    assert paths == [
        Path("out/data.csv"),
        Path("out/data (1).csv"),
        Path("out/other.csv"),
        Path("out/data (2).csv"),
    ]
