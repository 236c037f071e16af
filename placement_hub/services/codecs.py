"""
Codecs between the wire representation of a student row and the text the
profile form edits.

ListTextCodec   list of tags  <->  "React, Node, SQL"
EducationCodec  education entries  <->  one entry per line:

    qualification | institution | year | score

Trailing fields may be left out ("HSC | City College"). A JSON array of
entry objects is accepted too, so blobs written by older clients can be
pasted back unchanged.
"""

import json
from typing import Any, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from placement_hub.core.exceptions import TransformError
from placement_hub.schemas.schemas import EducationEntry


class ListTextCodec:
    """
    Bidirectional list <-> delimited text codec.

    decode() trims every item and drops empty ones, so "a, ,b," -> ["a", "b"].
    Items are tags: order is kept but carries no meaning, duplicates are kept.
    """

    def __init__(self, delimiter: str = ",", joiner: str = ", "):
        self.delimiter = delimiter
        self.joiner = joiner

    def encode(self, values: Optional[Iterable[str]]) -> str:
        return self.joiner.join(v.strip() for v in (values or []) if v and v.strip())

    def decode(self, text: Optional[str]) -> List[str]:
        if not text:
            return []
        return [part.strip() for part in text.split(self.delimiter) if part.strip()]


FIELD_SEPARATOR = "|"
ENTRY_FIELDS = ("qualification", "institution", "year", "score")

_entries_adapter = TypeAdapter(List[EducationEntry])


class EducationCodec:
    def to_text(self, blob: Any) -> str:
        """Render the stored blob for editing. Malformed blobs raise TransformError."""
        if blob is None or blob == []:
            return ""
        if isinstance(blob, str):
            # free text stored by older clients, edited as-is
            return blob
        if isinstance(blob, dict):
            blob = [blob]
        try:
            entries = _entries_adapter.validate_python(blob)
        except ValidationError as e:
            raise TransformError(f"Stored past education data is malformed: {e.errors()[0]['msg']}") from e
        return "\n".join(self._format_line(entry) for entry in entries)

    def parse(self, text: Optional[str]) -> List[EducationEntry]:
        """Parse edited text back into entries. Any bad line fails the whole parse."""
        text = (text or "").strip()
        if not text:
            return []
        if text[0] in "[{":
            return self._parse_json(text)

        entries = []
        for number, line in enumerate(text.splitlines(), start=1):
            if line.strip():
                entries.append(self._parse_line(number, line))
        return entries

    def to_wire(self, entries: List[EducationEntry]) -> list:
        return [entry.model_dump(exclude_none=True) for entry in entries]

    def _format_line(self, entry: EducationEntry) -> str:
        values = [
            entry.qualification,
            entry.institution or "",
            str(entry.year) if entry.year is not None else "",
            entry.score or "",
        ]
        while values and not values[-1]:
            values.pop()
        return f" {FIELD_SEPARATOR} ".join(values)

    def _parse_line(self, number: int, line: str) -> EducationEntry:
        parts = [part.strip() for part in line.split(FIELD_SEPARATOR)]
        if len(parts) > len(ENTRY_FIELDS):
            raise TransformError(
                f"Past education line {number} has {len(parts)} fields, expected at most "
                f"{len(ENTRY_FIELDS)} (qualification | institution | year | score)"
            )
        if not parts[0]:
            raise TransformError(f"Past education line {number} is missing the qualification")

        raw = {field: value for field, value in zip(ENTRY_FIELDS, parts) if value}
        try:
            return EducationEntry.model_validate(raw)
        except ValidationError as e:
            error = e.errors()[0]
            field = error["loc"][0] if error["loc"] else "entry"
            raise TransformError(f"Past education line {number}: invalid {field} ({error['msg']})") from e

    def _parse_json(self, text: str) -> List[EducationEntry]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise TransformError(f"Past education is not valid JSON: {e.msg} at line {e.lineno}") from e
        if isinstance(data, dict):
            data = [data]
        try:
            return _entries_adapter.validate_python(data)
        except ValidationError as e:
            raise TransformError(f"Past education JSON does not match the expected entries: {e.errors()[0]['msg']}") from e


list_codec = ListTextCodec()
education_codec = EducationCodec()
