from __future__ import annotations

import pytest

from chainreq import Data, File, Value


def test_value_get_set_delete() -> None:
    value = Value()
    value.set("key1", "value1")
    assert len(value) == 1
    assert value.get("key1") == "value1"
    assert value.get("missing") == ""

    value.delete("key1")
    value.delete("missing")
    assert len(value) == 0


def test_value_encode_is_sorted_and_escaped() -> None:
    value = Value({"b": "2", "a": "1", "q": "x&y"})
    assert value.encode() == "a=1&b=2&q=x%26y"


def test_value_round_trip_ignores_insertion_order() -> None:
    first = Value({"a": "1", "b": "2"})
    second = Value({"b": "2", "a": "1"})

    assert first.encode() == second.encode()
    assert Value.parse(first.encode()) == {"a": "1", "b": "2"}
    assert Value.parse("?" + second.encode()) == {"a": "1", "b": "2"}


def test_data_get_set_delete() -> None:
    data = Data()
    data.set("msg", "hello world")
    data.set("num", 2019)
    assert len(data) == 2
    assert data.get("msg") == "hello world"
    assert data.get("num") == 2019
    assert data.get("missing") is None

    data.delete("msg")
    data.delete("num")
    assert len(data) == 0


def test_data_accepts_nested_json_values() -> None:
    data = Data({"nested": {"list": [1, 2.5, True, None, "x"]}}, flag=False)
    assert data == {"nested": {"list": [1, 2.5, True, None, "x"]}, "flag": False}


def test_data_rejects_non_json_values() -> None:
    data = Data()
    with pytest.raises(ValueError, match="not JSON-representable"):
        data.set("when", object())


def test_file_string_omits_path_and_empty_fields() -> None:
    file = File(fieldname="testfile", filename="testfile", filepath="testfile.txt")
    assert str(file) == '{"fieldname":"testfile","filename":"testfile"}'
    assert str(File()) == "{}"


def test_file_upload_name_defaults_to_basename() -> None:
    assert File(fieldname="f", filepath="/tmp/dir/report.pdf").upload_name == "report.pdf"
    assert File(fieldname="f", filename="x.pdf", filepath="/tmp/r.pdf").upload_name == "x.pdf"


def test_file_validate_path(tmp_path) -> None:
    existing = tmp_path / "a.txt"
    existing.write_text("a")
    File(fieldname="a", filepath=str(existing)).validate_path()

    with pytest.raises(FileNotFoundError):
        File(fieldname="a", filepath=str(tmp_path / "missing.txt")).validate_path()
    with pytest.raises(FileNotFoundError):
        File(fieldname="a").validate_path()
    with pytest.raises(IsADirectoryError):
        File(fieldname="a", filepath=str(tmp_path)).validate_path()
