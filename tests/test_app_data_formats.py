import struct

import pytest

from droidscope.app_data_formats import (
    DataEntryKind,
    DbTable,
    PackageError,
    ProtobufError,
    attr_value,
    join_path,
    parent_path,
    parse_datastore_preferences,
    parse_ls,
    parse_shared_preferences_xml,
    parse_string_set,
    parse_table_preview,
    parse_tables,
    read_varint,
    shell_quote,
    split_tsv,
    sql_identifier,
    validate_package,
    xml_unescape,
)


def _entry(key: bytes, value: bytes) -> bytes:
    inner = b"\x0a" + bytes([len(key)]) + key + b"\x12" + bytes([len(value)]) + value
    return b"\x0a" + bytes([len(inner)]) + inner


def test_parses_shared_preferences_xml():
    xml = """
        <map>
            <string name="token">a&amp;b</string>
            <boolean name="enabled" value="true" />
            <int name="count" value="7" />
            <set name="tags"><string>one</string><string>two</string></set>
        </map>
    """
    rows = parse_shared_preferences_xml(xml)
    assert len(rows) == 4
    by_key = {r.key: r for r in rows}
    assert by_key["token"].value == "a&b"
    assert by_key["enabled"].value == "true"
    assert by_key["tags"].value == "one, two"
    assert by_key["count"].value_type == "int"
    assert by_key["count"].value == "7"
    assert [r.key for r in rows] == ["count", "enabled", "tags", "token"]


def test_shared_preferences_empty_string_and_sorting():
    xml = '<?xml version="1.0"?><map><string name="b" /><long name="A" value="5" /></map>'
    rows = parse_shared_preferences_xml(xml)
    assert [(r.key, r.value_type, r.value) for r in rows] == [
        ("A", "long", "5"),
        ("b", "string", ""),
    ]


def test_parses_sqlite_tsv_preview():
    preview = parse_table_preview("databases/app.db", "users", "id\tname\n1\tAda\n")
    assert preview.columns == ["id", "name"]
    assert preview.rows == [["1", "Ada"]]
    assert preview.database == "databases/app.db"
    assert preview.table == "users"


def test_empty_table_preview():
    preview = parse_table_preview("db", "t", "")
    assert preview.columns == ["(empty)"]
    assert preview.rows == []


def test_parses_datastore_preferences_proto():
    data = bytes(
        [0x0A, 0x0D, 0x0A, 0x04]
        + list(b"name")
        + [0x12, 0x05, 0x32, 0x03]
        + list(b"Ada")
    )
    rows, message = parse_datastore_preferences(data)
    assert message is None
    assert len(rows) == 1
    assert rows[0].key == "name"
    assert rows[0].value_type == "string"
    assert rows[0].value == "Ada"


@pytest.mark.parametrize(
    "value, expected",
    [
        (b"\x08\x01", ("bool", "true")),
        (b"\x08\x00", ("bool", "false")),
        (b"\x15" + struct.pack("<f", 1.5), ("float", "1.5")),
        (b"\x15" + struct.pack("<f", 0.1), ("float", "0.1")),
        (b"\x19" + struct.pack("<d", 0.1), ("double", "0.1")),
        (b"\x19" + struct.pack("<d", 2.0), ("double", "2")),
        (b"\x20" + b"\xff" * 9 + b"\x01", ("int", "-1")),
        (b"\x28" + b"\xff" * 9 + b"\x01", ("long", "-1")),
        (b"\x20\x96\x01", ("int", "150")),
        (b"\x3a\x06\x0a\x01a\x0a\x01b", ("set", "a, b")),
        (b"\x42\x03xyz", ("bytes", "3 bytes")),
        (b"", ("unknown", "")),
    ],
)
def test_datastore_value_types(value, expected):
    rows, message = parse_datastore_preferences(_entry(b"k", value))
    assert message is None
    assert [(r.value_type, r.value) for r in rows] == [expected]


def test_datastore_rows_sorted_case_insensitively():
    data = _entry(b"b", b"\x08\x01") + _entry(b"A", b"\x08\x00")
    rows, _ = parse_datastore_preferences(data)
    assert [r.key for r in rows] == ["A", "b"]


def test_datastore_truncated():
    rows, message = parse_datastore_preferences(b"\x0a\x05\x0a")
    assert rows == []
    assert message == "truncated DataStore protobuf"


def test_datastore_unsupported_wire_type():
    rows, message = parse_datastore_preferences(b"\x0b")
    assert rows == []
    assert message == "unsupported DataStore protobuf wire type"


def test_read_varint():
    assert read_varint(b"\x96\x01", 0) == (150, 2)
    assert read_varint(b"\x00\x01", 1) == (1, 2)


def test_read_varint_errors():
    with pytest.raises(ProtobufError, match="truncated"):
        read_varint(b"\x80", 0)
    with pytest.raises(ProtobufError, match="invalid"):
        read_varint(b"\xff" * 11, 0)


def test_validate_package():
    validate_package("com.example.app_1")
    with pytest.raises(PackageError, match="empty"):
        validate_package("   ")
    with pytest.raises(PackageError, match="unsupported"):
        validate_package("com.example;rm")


def test_shell_quote():
    assert shell_quote("") == "''"
    assert shell_quote("a b") == "'a b'"
    assert shell_quote("it's") == "'it'\\''s'"


def test_sql_identifier():
    assert sql_identifier('we"ird') == '"we""ird"'


def test_join_path():
    assert join_path(".", "a") == "a"
    assert join_path("", "a") == "a"
    assert join_path("files/", "a") == "files/a"
    assert join_path("files", "a") == "files/a"


def test_parent_path():
    assert parent_path(".") is None
    assert parent_path("") is None
    assert parent_path("files") == "."
    assert parent_path("files/sub/") == "files"
    assert parent_path("/top") == "."


def test_parse_ls():
    text = (
        "total 16\n"
        "drwxrwx--x 2 u0_a1 u0_a1 4096 2024-01-01 12:00 cache\n"
        "-rw------- 1 u0_a1 u0_a1 123 2024-01-02 13:00 My File.txt\n"
        "lrwxrwxrwx 1 u0_a1 u0_a1 10 2024-01-02 13:00 link -> /target\n"
        "drwx------ 2 u0_a1 u0_a1 4096 2024-01-01 12:00 .\n"
        "-rw------- 1 u0_a1 u0_a1 7 2024-01-02 13:00 a.db\n"
        "short line\n"
    )
    entries = parse_ls("files", text)
    assert [e.name for e in entries] == ["cache", "a.db", "My File.txt", "link"]
    cache = entries[0]
    assert cache.kind is DataEntryKind.DIRECTORY
    assert cache.path == "files/cache"
    assert cache.size_bytes == 4096
    assert cache.meta == "drwxrwx--x 2024-01-01 12:00"
    assert entries[2].path == "files/My File.txt"
    assert entries[3].kind is DataEntryKind.OTHER
    assert entries[1].kind is DataEntryKind.FILE


def test_parse_tables():
    text = "users\ttable\n\tview\nnotab\nv_all\tview\n"
    assert parse_tables(text) == [DbTable("users", "table"), DbTable("v_all", "view")]


def test_split_tsv_keeps_empty_cells():
    assert split_tsv("a\t\tb") == ["a", "", "b"]


def test_xml_unescape_order():
    assert xml_unescape("&amp;lt; &quot;x&quot; &apos;") == "&lt; \"x\" '"


def test_attr_value():
    assert attr_value('name="k" value="a&gt;b"', "value") == "a>b"
    assert attr_value('name="k"', "value") is None
    assert attr_value('value="open', "value") is None


def test_parse_string_set():
    assert parse_string_set("<string>x</string><string>y&amp;z</string>") == ["x", "y&z"]
    assert parse_string_set("<string>unterminated") == []