"""
Multi-valued header metadata and its canonical ASCII wire form.

Header frames on the wire are always
``encode_frame(encode_ascii(serialize_headers(md)), FrameType.HEADERS)``.
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple, Union

from domain.common.exceptions import InvalidAsciiException
from domain.relay.frame import FrameType, encode_frame


GRPC_STATUS = "grpc-status"
GRPC_MESSAGE = "grpc-message"

_ALLOWED_CONTROL = frozenset((0x09, 0x0A, 0x0D))


class Metadata:
    """Ordered mapping of case-sensitive header name to an ordered list of values."""

    def __init__(self, initial: Union[Dict[str, Iterable[str]], None] = None) -> None:
        self._data: Dict[str, List[str]] = {}
        if initial:
            for name, values in initial.items():
                self.append(name, values)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "Metadata":
        md = cls()
        for name, value in pairs:
            md.append(name, value)
        return md

    def append(self, name: str, values: Union[str, Iterable[str]]) -> None:
        if isinstance(values, str):
            values = [values]
        self._data.setdefault(name, []).extend(values)

    def get(self, name: str) -> List[str]:
        return list(self._data.get(name, ()))

    def first(self, name: str) -> str | None:
        values = self._data.get(name)
        return values[0] if values else None

    def has(self, name: str) -> bool:
        return name in self._data

    def merge(self, other: "Metadata") -> None:
        for name, values in other.items():
            self.append(name, values)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for name, values in self._data.items():
            yield name, list(values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metadata):
            return NotImplemented
        return list(self.items()) == list(other.items())

    def __repr__(self) -> str:
        return f"Metadata({self._data!r})"


def serialize_headers(metadata: Metadata) -> str:
    lines = []
    for name, values in metadata.items():
        for value in values:
            lines.append(f"{name}: {value}\r\n")
    return "".join(lines)


def is_valid_header_ascii(char_code: int) -> bool:
    return char_code in _ALLOWED_CONTROL or 0x20 <= char_code <= 0x7E


def encode_ascii(text: str) -> bytes:
    """Encode header text, rejecting anything outside printable ASCII plus TAB/LF/CR."""
    for position, char in enumerate(text):
        if not is_valid_header_ascii(ord(char)):
            raise InvalidAsciiException(position, ord(char))
    return text.encode("ascii")


def encode_header_frame(metadata: Metadata) -> bytes:
    return encode_frame(encode_ascii(serialize_headers(metadata)), FrameType.HEADERS)


def parse_headers(text: str) -> Metadata:
    """Parse ``name: value`` lines (a trailer frame body) back into metadata."""
    md = Metadata()
    for line in text.split("\r\n"):
        if not line.strip():
            continue
        name, sep, value = line.partition(":")
        if not sep:
            continue
        md.append(name.strip().lower(), value.strip())
    return md


__all__ = [
    "GRPC_STATUS",
    "GRPC_MESSAGE",
    "Metadata",
    "serialize_headers",
    "is_valid_header_ascii",
    "encode_ascii",
    "encode_header_frame",
    "parse_headers",
]
