"""
Content Groups - The generic payload shape of document-graph contracts.

A content group is an ordered list of labeled values; a value is a tagged
union over the kinds the contracts accept.  The receiving contract
validates structure and meaning, so nothing here checks labels or
required entries.

The node's JSON form of a value is ``[kind, value]``, e.g.
``{"label": "member", "value": ["name", "member1"]}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Iterable, Optional, Union

from .chain.codec import Packer, pack_value, register_alias, register_primitive, register_struct


class ContentNotFoundError(KeyError):
    """A document has no content with the requested label."""


class ValueKind(IntEnum):
    """Value kinds, numbered by their position in the on-chain variant."""

    NAME = 0
    STRING = 1
    ASSET = 2
    TIME_POINT = 3
    INT64 = 4
    CHECKSUM256 = 5

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "ValueKind":
        for kind, kind_label in _KIND_LABELS.items():
            if kind_label == label:
                return kind
        raise ValueError(f"Unknown content value kind: {label}")


_KIND_LABELS = {
    ValueKind.NAME: "name",
    ValueKind.STRING: "string",
    ValueKind.ASSET: "asset",
    ValueKind.TIME_POINT: "time_point",
    ValueKind.INT64: "int64",
    ValueKind.CHECKSUM256: "checksum256",
}


@dataclass(frozen=True)
class FlexValue:
    kind: ValueKind
    value: Any

    @classmethod
    def account(cls, value: str) -> "FlexValue":
        return cls(ValueKind.NAME, value)

    @classmethod
    def text(cls, value: str) -> "FlexValue":
        return cls(ValueKind.STRING, value)

    @classmethod
    def amount(cls, value: str) -> "FlexValue":
        return cls(ValueKind.ASSET, value)

    @classmethod
    def timestamp(cls, value: Union[str, datetime, int]) -> "FlexValue":
        return cls(ValueKind.TIME_POINT, value)

    @classmethod
    def integer(cls, value: int) -> "FlexValue":
        return cls(ValueKind.INT64, int(value))

    @classmethod
    def checksum(cls, value: str) -> "FlexValue":
        return cls(ValueKind.CHECKSUM256, value)

    @classmethod
    def from_json(cls, data: list[Any]) -> "FlexValue":
        kind_label, value = data
        kind = ValueKind.from_label(kind_label)
        if kind is ValueKind.INT64:
            value = int(value)
        return cls(kind, value)

    def to_json(self) -> list[Any]:
        value = self.value
        if isinstance(value, datetime):
            value = value.isoformat()
        return [self.kind.label, value]


@dataclass(frozen=True)
class Content:
    label: str
    value: FlexValue

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Content":
        return cls(label=data["label"], value=FlexValue.from_json(data["value"]))

    def to_json(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value.to_json()}


class ContentGroup(list):
    """Ordered list of :class:`Content` entries."""

    def __init__(self, contents: Iterable[Content] = ()) -> None:
        super().__init__(contents)

    @classmethod
    def of(cls, **values: FlexValue) -> "ContentGroup":
        """Build a group from keyword arguments, in argument order."""
        return cls(Content(label, value) for label, value in values.items())

    @classmethod
    def from_json(cls, data: list[dict[str, Any]]) -> "ContentGroup":
        return cls(Content.from_json(item) for item in data)

    def to_json(self) -> list[dict[str, Any]]:
        return [content.to_json() for content in self]

    def find(self, label: str) -> Optional[Content]:
        for content in self:
            if content.label == label:
                return content
        return None


def parse_content_groups(data: list[list[dict[str, Any]]]) -> list[ContentGroup]:
    return [ContentGroup.from_json(group) for group in data]


@dataclass
class Document:
    """A document row as stored by a document-graph contract."""

    id: int
    hash: str
    creator: str
    content_groups: list[ContentGroup] = field(default_factory=list)
    created_date: str = ""
    contract: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Document":
        return cls(
            id=int(row["id"]),
            hash=row["hash"],
            creator=row["creator"],
            content_groups=parse_content_groups(row.get("content_groups", [])),
            created_date=row.get("created_date", ""),
            contract=row.get("contract", ""),
        )

    def get_content(self, label: str) -> FlexValue:
        """
        First value labeled ``label`` across all groups.

        Raises:
            ContentNotFoundError: If no content carries the label
        """
        for group in self.content_groups:
            content = group.find(label)
            if content is not None:
                return content.value
        raise ContentNotFoundError(label)


def _pack_flexvalue(packer: Packer, value: Union[FlexValue, list[Any]]) -> None:
    if not isinstance(value, FlexValue):
        value = FlexValue.from_json(value)
    packer.varuint32(int(value.kind))
    pack_value(packer, value.kind.label, value.value)


register_primitive("flexvalue", _pack_flexvalue)
register_struct("content", [("label", "string"), ("value", "flexvalue")])
register_alias("content_group", "content[]")
