"""Type dependency resolution and ordering of the messages of a .proto file."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .model import Label, ProtoEnum, ProtoField, ProtoFile, ProtoMessage, ProtoOneof

_SCALAR_TYPES = frozenset(
    {
        "bool",
        "bytes",
        "double",
        "float",
        "int32",
        "int64",
        "uint32",
        "uint64",
        "sint32",
        "sint64",
        "fixed32",
        "fixed64",
        "sfixed32",
        "sfixed64",
        "string",
    }
)


class ProtoParseError(Exception):
    """A .proto file that cannot be turned into generated code.

    ``reason`` is the bare message, ``token`` the piece of the file it is about.
    """

    def __init__(self, reason: str, *, path: Optional[Path] = None, token: str = "") -> None:
        text = reason if path is None or not str(path) or str(path) == "." else f"{path}: {reason}"
        super().__init__(text)
        self.reason = reason
        self.path = path
        self.token = token


def _parse_error(file: ProtoFile, token: str, reason: str) -> ProtoParseError:
    return ProtoParseError(reason, path=file.path, token=token)


def is_scalar_type(type_name: str) -> bool:
    """Return True if ``type_name`` is one of the protobuf scalar types."""
    return type_name in _SCALAR_TYPES


class _Mode(enum.Enum):
    # Only accept types that are already defined.
    DEPENDENCIES_ONLY = enum.auto()
    # Turn optional fields into pointers to break cyclic dependencies.
    OPTIONAL_POINTERS = enum.auto()


@dataclass
class _State:
    file: ProtoFile
    mode: _Mode = _Mode.DEPENDENCIES_ONLY
    resolved_messages: int = 0

    @property
    def imports(self) -> list[ProtoFile]:
        return self.file.file_imports


@dataclass
class _Context:
    """A message together with the chain of messages enclosing it."""

    message: ProtoMessage
    parent: Optional[_Context]
    state: _State


def _first_segment(type_name: str) -> str:
    return type_name.split(".", 1)[0]


def _is_imported(full_type: str, imports: list[ProtoFile]) -> bool:
    return any(
        len(full_type) > len(imported.package.name)
        and full_type[len(imported.package.name)] == "."
        and full_type.startswith(imported.package.name)
        for imported in imports
    )


def _is_enum(type_name: str, enums: list[ProtoEnum]) -> bool:
    return any(type_name == item.name for item in enums)


def _is_sub_message(type_name: str, messages: list[ProtoMessage]) -> bool:
    return any(type_name == message.name for message in messages)


def _is_resolved_sub_message(type_name: str, messages: list[ProtoMessage]) -> bool:
    return any(type_name == message.name and message.resolved > 0 for message in messages)


def _is_sub_oneof(type_name: str, oneofs: list[ProtoOneof]) -> bool:
    return any(type_name == oneof.name for oneof in oneofs)


def _is_self(field: ProtoField, ctx: _Context) -> bool:
    """A field of the message's own type, made a pointer where it is optional."""
    if field.type != ctx.message.name:
        return False
    if field.label is Label.NONE:
        raise _parse_error(
            ctx.state.file,
            field.name,
            f"Field '{field.name}' cannot be self-referencing (make it optional)",
        )
    if field.label is Label.OPTIONAL:
        field.label = Label.PTR
    return True


def _is_forwarded(field: ProtoField, ctx: _Context) -> bool:
    """A field whose type is a sibling message that can be declared ahead."""
    parent = ctx.parent
    if parent is None:
        return False
    for message in parent.message.messages:
        if field.type != message.name:
            continue
        if field.label is Label.NONE:
            return False
        if field.label is Label.OPTIONAL:
            if ctx.state.mode is _Mode.DEPENDENCIES_ONLY:
                return False
            field.label = Label.PTR
            # Go back to plain dependency checks so that as few pointers
            # as possible are created.
            ctx.state.mode = _Mode.DEPENDENCIES_ONLY
        parent.message.forwards.add(message.name)
        return True
    return False


def _is_parent(field: ProtoField, ctx: _Context) -> bool:
    """A field of the enclosing message's type, made a pointer where it is optional."""
    parent = ctx.parent
    if parent is None or field.type != parent.message.name:
        return False
    if field.label is Label.NONE:
        raise _parse_error(
            ctx.state.file,
            field.name,
            f"Field '{field.name}' cannot reference parent (make it optional)",
        )
    if field.label is Label.OPTIONAL:
        field.label = Label.PTR
    return True


def _is_defined_in_parents(type_name: str, ctx: _Context) -> bool:
    parent = ctx.parent
    while parent is not None:
        message = parent.message
        if (
            _is_enum(type_name, message.enums)
            or _is_resolved_sub_message(type_name, message.messages)
            or _is_sub_oneof(type_name, message.oneofs)
        ):
            return True
        parent = parent.parent
    return False


def _all_resolved(messages: list[ProtoMessage]) -> bool:
    return all(message.resolved > 0 for message in messages)


def _field_is_known(field: ProtoField, ctx: _Context) -> bool:
    # Only the first part of a dotted name is checked.
    head = _first_segment(field.type)
    message = ctx.message
    return (
        is_scalar_type(field.type)
        or _is_self(field, ctx)
        or _is_enum(field.type, message.enums)
        or _is_sub_message(head, message.messages)
        or _is_sub_oneof(head, message.oneofs)
        or _is_parent(field, ctx)
        or _is_defined_in_parents(head, ctx)
        or _is_imported(field.type, ctx.state.imports)
        or _is_forwarded(field, ctx)
    )


def _type_is_known(type_name: str, ctx: _Context) -> bool:
    head = _first_segment(type_name)
    message = ctx.message
    return (
        is_scalar_type(type_name)
        or _is_enum(type_name, message.enums)
        or _is_sub_message(head, message.messages)
        or _is_defined_in_parents(head, ctx)
        or _is_imported(type_name, ctx.state.imports)
    )


def _resolve_fields(ctx: _Context) -> None:
    message = ctx.message
    if message.resolved > 0:
        return
    if not all(_field_is_known(field, ctx) for field in message.fields):
        return
    if not all(_type_is_known(item.value_type, ctx) for item in message.maps):
        return
    if not all(_type_is_known(field.type, ctx) for oneof in message.oneofs for field in oneof.fields):
        return
    if _all_resolved(message.messages):
        ctx.state.resolved_messages += 1
        message.resolved = ctx.state.resolved_messages


def _resolve_dependencies(ctx: _Context) -> None:
    if ctx.message.resolved > 0:
        return
    for message in ctx.message.messages:
        _resolve_dependencies(_Context(message, ctx, ctx.state))
    _resolve_fields(ctx)


def _unresolved_error(file: ProtoFile) -> ProtoParseError:
    reason = "type dependency can't be resolved"
    for message in file.package.messages:
        if message.resolved == 0:
            return _parse_error(file, message.name, reason)
    return _parse_error(file, file.content, reason)


def _sort_messages(messages: list[ProtoMessage]) -> None:
    messages.sort(key=lambda message: message.resolved)
    for message in messages:
        _sort_messages(message.messages)


def resolve_messages(file: ProtoFile) -> None:
    """Order the messages of ``file`` so that every message follows its dependencies.

    Optional fields that close a dependency cycle become pointers and the
    messages they name are recorded as forward declarations. Raises
    ProtoParseError when a type cannot be resolved.
    """
    state = _State(file)
    while not _all_resolved(file.package.messages):
        before = state.resolved_messages
        _resolve_dependencies(_Context(file.package, None, state))
        if before == state.resolved_messages:
            if state.mode is _Mode.DEPENDENCIES_ONLY:
                state.mode = _Mode.OPTIONAL_POINTERS
                continue
            raise _unresolved_error(file)
    _sort_messages(file.package.messages)