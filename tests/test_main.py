"""Tests for the command-line dump tool."""

import json

from firebolt_cursor.__main__ import main
from tests.conftest import ALL_TYPES_RESPONSE, TAGS_RESPONSE, tsv


def test_dump_prints_json_lines(tmp_path, capsys):
    path = tmp_path / "response.tsv"
    path.write_bytes(TAGS_RESPONSE)
    assert main([str(path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line) for line in lines] == [
        {"id": 1, "tags": ["a", "b"]},
        {"id": 2, "tags": None},
        {"id": 3, "tags": []},
    ]


def test_dump_all_types_with_zone(tmp_path, capsys):
    path = tmp_path / "response.tsv"
    path.write_bytes(ALL_TYPES_RESPONSE)
    assert main([str(path), "--tz", "EST"]) == 0
    first, second = (json.loads(line) for line in capsys.readouterr().out.splitlines())
    assert first["d"] == "12.30"
    assert first["bin"] == "\\xdeadbeef"
    assert first["ts"] == "2024-01-15T15:30:00+00:00"
    assert first["tstz"] == "2024-01-15T08:30:00+00:00"
    assert all(value is None for value in second.values())


def test_dump_reports_errors(tmp_path, capsys):
    path = tmp_path / "response.tsv"
    path.write_bytes(tsv(["a"], ["geometry"]))
    assert main([str(path)]) == 1
    assert capsys.readouterr().out == ""


def test_dump_reports_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.tsv")]) == 1
    assert capsys.readouterr().out == ""
