"""Syntax tree of a parsed .proto file."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ProtoComment:
    """Comment lines attached to an element."""

    comments: list[str] = field(default_factory=list)


@dataclass
class ProtoReserved:
    """Reserved field number ranges and reserved field names."""

    reserved_range: list[tuple[int, int]] = field(default_factory=list)
    reserved_name: set[str] = field(default_factory=set)


@dataclass
class ProtoBase:
    """Attributes shared by most proto elements: name, number, options, comment."""

    name: str = ""
    number: int = 0
    options: dict[str, str] = field(default_factory=dict)
    comment: ProtoComment = field(default_factory=ProtoComment)


class Label(enum.IntEnum):
    """Type modifier of a field."""

    # Plain value of the field's type.
    NONE = 0
    # The value may be absent.
    OPTIONAL = 1
    # A sequence of values.
    REPEATED = 2
    # An owned reference, used to break circular type dependencies.
    PTR = 3


@dataclass
class ProtoField(ProtoBase):
    """A message field."""

    label: Label = Label.OPTIONAL
    type: str = ""
    bit_field: str = ""


@dataclass
class ProtoEnum(ProtoBase):
    """An enum definition with its values."""

    fields: list[ProtoBase] = field(default_factory=list)
    reserved: ProtoReserved = field(default_factory=ProtoReserved)


@dataclass
class ProtoMap(ProtoBase):
    """A map field."""

    key_type: str = ""
    value_type: str = ""


@dataclass
class ProtoOneof(ProtoBase):
    """A oneof group of fields."""

    fields: list[ProtoField] = field(default_factory=list)


@dataclass
class ProtoMessage(ProtoBase):
    """A message definition, also used for the top-level package scope.

    ``resolved`` is the order in which the message's type dependencies were
    satisfied (0 while unresolved); ``forwards`` names the nested messages
    that must be declared ahead of their definition.
    """

    fields: list[ProtoField] = field(default_factory=list)
    extensions: list[tuple[int, int]] = field(default_factory=list)
    messages: list[ProtoMessage] = field(default_factory=list)
    maps: list[ProtoMap] = field(default_factory=list)
    oneofs: list[ProtoOneof] = field(default_factory=list)
    enums: list[ProtoEnum] = field(default_factory=list)
    reserved: ProtoReserved = field(default_factory=ProtoReserved)
    resolved: int = 0
    forwards: set[str] = field(default_factory=set)


@dataclass
class ProtoImport:
    """An import statement."""

    file_name: str = ""
    comments: ProtoComment = field(default_factory=ProtoComment)


@dataclass
class ProtoSyntax:
    """The syntax statement; proto2 unless stated otherwise."""

    version: int = 2
    comments: ProtoComment = field(default_factory=ProtoComment)


@dataclass
class ProtoService:
    """A service definition (services carry no content)."""


@dataclass
class ProtoFile:
    """A whole .proto file together with the files it imports."""

    path: Path = field(default_factory=Path)
    content: str = ""
    syntax: ProtoSyntax = field(default_factory=ProtoSyntax)
    comment: ProtoComment = field(default_factory=ProtoComment)
    imports: list[ProtoImport] = field(default_factory=list)
    package: ProtoMessage = field(default_factory=ProtoMessage)
    options: dict[str, str] = field(default_factory=dict)
    services: list[ProtoService] = field(default_factory=list)
    file_imports: list[ProtoFile] = field(default_factory=list)