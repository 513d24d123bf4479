"""Parsers and helpers for app-private data read through ``run-as``."""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

_U64_MASK = (1 << 64) - 1
_U64_TEXT = re.compile(r"\+?[0-9]+")
_WHITESPACE = re.compile(r"\s")


class PackageError(ValueError):
    """Raised when a target package name cannot be used in a shell command."""


class ProtobufError(ValueError):
    """Raised when DataStore protobuf bytes are malformed."""


class DataEntryKind(Enum):
    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"


_ENTRY_RANK = {DataEntryKind.DIRECTORY: 0, DataEntryKind.FILE: 1, DataEntryKind.OTHER: 2}


@dataclass
class DataEntry:
    name: str
    path: str
    kind: DataEntryKind
    size_bytes: int | None
    meta: str


@dataclass
class DbTable:
    name: str
    kind: str


@dataclass
class DbTablePreview:
    database: str
    table: str
    columns: list[str]
    rows: list[list[str]]


@dataclass
class PreferenceRow:
    key: str
    value_type: str
    value: str


def _lines(text: str) -> list[str]:
    """Split into lines on ``\\n``, dropping a trailing ``\\r`` and a final empty line."""
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def validate_package(package: str) -> None:
    """Raise PackageError unless ``package`` is a plain Java-style package name."""
    if not package.strip():
        raise PackageError("target package is empty")
    if not all((c.isascii() and c.isalnum()) or c in "_." for c in package):
        raise PackageError("target package contains unsupported characters")


def shell_quote(text: str) -> str:
    if not text:
        return "''"
    return "'" + text.replace("'", "'\\''") + "'"


def sql_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def join_path(parent: str, name: str) -> str:
    if parent in (".", ""):
        return name
    return f"{parent.rstrip('/')}/{name}"


def parent_path(path: str) -> str | None:
    """The parent of a relative data path; ``None`` at the top."""
    if path in (".", ""):
        return None
    head, sep, _ = path.rstrip("/").rpartition("/")
    if sep and head:
        return head
    return "."


def _parse_u64(text: str) -> int | None:
    if not _U64_TEXT.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _U64_MASK else None


def parse_ls(parent: str, text: str) -> list[DataEntry]:
    """Entries from ``ls -la`` output: directories first, then by name."""
    entries = []
    for line in _lines(text):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("total "):
            continue
        cols = trimmed.split()
        if len(cols) < 8:
            continue
        mode = cols[0]
        name = " ".join(cols[7:])
        if name in (".", ".."):
            continue
        if " -> " in name:
            name = name.split(" -> ", 1)[0]
        if mode.startswith("d"):
            kind = DataEntryKind.DIRECTORY
        elif mode.startswith("-"):
            kind = DataEntryKind.FILE
        else:
            kind = DataEntryKind.OTHER
        entries.append(
            DataEntry(
                name=name,
                path=join_path(parent, name),
                kind=kind,
                size_bytes=_parse_u64(cols[4]),
                meta=f"{mode} {cols[5]} {cols[6]}",
            )
        )
    entries.sort(key=lambda e: (_ENTRY_RANK[e.kind], e.name.lower()))
    return entries


def parse_tables(text: str) -> list[DbTable]:
    """Tables from tab-separated ``name<TAB>type`` sqlite3 output."""
    tables = []
    for line in _lines(text):
        if "\t" not in line:
            continue
        name, kind = line.split("\t", 1)
        if name.strip():
            tables.append(DbTable(name=name.strip(), kind=kind.strip()))
    return tables


def split_tsv(line: str) -> list[str]:
    return line.split("\t")


def parse_table_preview(database: str, table: str, text: str) -> DbTablePreview:
    """A preview from sqlite3 ``-header`` TSV output; the first line holds the columns."""
    lines = _lines(text)
    columns = split_tsv(lines[0]) if lines else ["(empty)"]
    rows = [split_tsv(line) for line in lines[1:]]
    return DbTablePreview(database=database, table=table, columns=columns, rows=rows)


def xml_unescape(text: str) -> str:
    return (
        text.replace("&quot;", '"')
        .replace("&apos;", "'")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&amp;", "&")
    )


def attr_value(attrs: str, name: str) -> str | None:
    """The unescaped value of ``name="..."`` within an attribute string."""
    needle = f'{name}="'
    found = attrs.find(needle)
    if found == -1:
        return None
    start = found + len(needle)
    end = attrs.find('"', start)
    if end == -1:
        return None
    return xml_unescape(attrs[start:end])


def parse_string_set(text: str) -> list[str]:
    """The ``<string>`` values inside a ``<set>`` body."""
    values = []
    rest = text
    close_tag = "</string>"
    while (start := rest.find("<string")) != -1:
        rest = rest[start:]
        open_end = rest.find(">")
        if open_end == -1:
            break
        after = rest[open_end + 1:]
        close = after.find(close_tag)
        if close == -1:
            break
        values.append(xml_unescape(after[:close]))
        rest = after[close + len(close_tag):]
    return values


def parse_shared_preferences_xml(text: str) -> list[PreferenceRow]:
    """Key/value rows from a SharedPreferences XML file, sorted by key."""
    rows = []
    rest = text
    while (start := rest.find("<")) != -1:
        rest = rest[start + 1:]
        if rest.startswith(("/", "?", "map")):
            continue
        end = rest.find(">")
        if end == -1:
            break
        tag = rest[:end]
        after = rest[end + 1:]
        self_closing = tag.rstrip().endswith("/")
        parts = _WHITESPACE.split(tag.strip().rstrip("/"), maxsplit=1)
        kind = parts[0]
        attrs = parts[1] if len(parts) > 1 else ""
        key = attr_value(attrs, "name")
        if key is None:
            rest = after
            continue

        if kind == "set":
            close = after.find("</set>")
            if close != -1:
                values = parse_string_set(after[:close])
                rows.append(PreferenceRow(key, "set", ", ".join(values)))
                rest = after[close + len("</set>"):]
                continue

        if kind == "string" and not self_closing:
            close = after.find("</string>")
            value = xml_unescape(after[:close]) if close != -1 else ""
        else:
            value = attr_value(attrs, "value") or ""
        rows.append(PreferenceRow(key, kind, value))
        rest = after
    rows.sort(key=lambda r: r.key.lower())
    return rows


def read_varint(data: bytes, pos: int) -> tuple[int, int]:
    """Decode a protobuf varint at ``pos``; return the value and the next position."""
    value = 0
    shift = 0
    while pos < len(data):
        byte = data[pos]
        pos += 1
        value = (value | ((byte & 0x7F) << shift)) & _U64_MASK
        if not byte & 0x80:
            return value, pos
        shift += 7
        if shift >= 64:
            raise ProtobufError("invalid DataStore protobuf varint")
    raise ProtobufError("truncated DataStore protobuf")


def _checked_end(pos: int, length: int, total: int) -> int:
    end = pos + length
    if end > total:
        raise ProtobufError("truncated DataStore protobuf")
    return end


def _skip_value(data: bytes, pos: int, wire: int) -> int:
    if wire == 0:
        return read_varint(data, pos)[1]
    if wire == 1:
        return _checked_end(pos, 8, len(data))
    if wire == 2:
        length, nxt = read_varint(data, pos)
        return _checked_end(nxt, length, len(data))
    if wire == 5:
        return _checked_end(pos, 4, len(data))
    raise ProtobufError("unsupported DataStore protobuf wire type")


def _fields(data: bytes):
    """Yield (field, wire, position after the tag, setter of the next position)."""
    pos = 0
    while pos < len(data):
        tag, pos = read_varint(data, pos)
        field, wire = tag >> 3, tag & 0x07
        nxt = yield field, wire, pos
        pos = nxt if nxt is not None else _skip_value(data, pos, wire)


def _length_delimited(data: bytes, pos: int) -> tuple[bytes, int]:
    length, start = read_varint(data, pos)
    end = _checked_end(start, length, len(data))
    return data[start:end], end


def _format_float(value: float, single: bool) -> str:
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "inf" if value > 0 else "-inf"
    if single:
        text = repr(value)
        for precision in range(1, 10):
            candidate = f"{value:.{precision}g}"
            if struct.unpack("<f", struct.pack("<f", float(candidate)))[0] == value:
                text = candidate
                break
    else:
        text = repr(value)
    plain = format(Decimal(text), "f")
    if "." in plain:
        plain = plain.rstrip("0").rstrip(".")
    return plain


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _parse_string_set_proto(data: bytes) -> list[str]:
    values = []
    fields = _fields(data)
    try:
        field, wire, pos = next(fields)
        while True:
            if field == 1 and wire == 2:
                chunk, end = _length_delimited(data, pos)
                values.append(chunk.decode("utf-8", errors="replace"))
                field, wire, pos = fields.send(end)
            else:
                field, wire, pos = fields.send(None)
    except StopIteration:
        pass
    return values


def _parse_value(data: bytes) -> tuple[str, str]:
    fields = _fields(data)
    try:
        field, wire, pos = next(fields)
        while True:
            if (field, wire) == (1, 0):
                return "bool", "true" if read_varint(data, pos)[0] else "false"
            if (field, wire) == (2, 5):
                end = _checked_end(pos, 4, len(data))
                return "float", _format_float(struct.unpack("<f", data[pos:end])[0], True)
            if (field, wire) == (3, 1):
                end = _checked_end(pos, 8, len(data))
                return "double", _format_float(struct.unpack("<d", data[pos:end])[0], False)
            if (field, wire) == (4, 0):
                return "int", str(_to_signed(read_varint(data, pos)[0], 32))
            if (field, wire) == (5, 0):
                return "long", str(_to_signed(read_varint(data, pos)[0], 64))
            if (field, wire) == (6, 2):
                chunk, _ = _length_delimited(data, pos)
                return "string", chunk.decode("utf-8", errors="replace")
            if (field, wire) == (7, 2):
                chunk, _ = _length_delimited(data, pos)
                return "set", ", ".join(_parse_string_set_proto(chunk))
            if (field, wire) == (8, 2):
                length, _ = read_varint(data, pos)
                return "bytes", f"{length} bytes"
            field, wire, pos = fields.send(None)
    except StopIteration:
        pass
    return "unknown", ""


def _parse_entry(data: bytes) -> PreferenceRow | None:
    key = None
    value = None
    fields = _fields(data)
    try:
        field, wire, pos = next(fields)
        while True:
            if (field, wire) == (1, 2):
                chunk, end = _length_delimited(data, pos)
                key = chunk.decode("utf-8", errors="replace")
                field, wire, pos = fields.send(end)
            elif (field, wire) == (2, 2):
                chunk, end = _length_delimited(data, pos)
                value = _parse_value(chunk)
                field, wire, pos = fields.send(end)
            else:
                field, wire, pos = fields.send(None)
    except StopIteration:
        pass
    if key is None or value is None:
        return None
    return PreferenceRow(key=key, value_type=value[0], value=value[1])


def _parse_preferences(data: bytes) -> list[PreferenceRow]:
    rows = []
    fields = _fields(data)
    try:
        field, wire, pos = next(fields)
        while True:
            if field == 1 and wire == 2:
                chunk, end = _length_delimited(data, pos)
                row = _parse_entry(chunk)
                if row is not None:
                    rows.append(row)
                field, wire, pos = fields.send(end)
            else:
                field, wire, pos = fields.send(None)
    except StopIteration:
        pass
    return rows


def parse_datastore_preferences(data: bytes) -> tuple[list[PreferenceRow], str | None]:
    """Rows from a Preferences DataStore file, or no rows and the reason it failed."""
    try:
        rows = _parse_preferences(bytes(data))
    except ProtobufError as exc:
        return [], str(exc)
    rows.sort(key=lambda r: r.key.lower())
    return rows, None