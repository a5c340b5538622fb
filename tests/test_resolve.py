import pytest

from spbproto.model import (
    Label,
    ProtoEnum,
    ProtoField,
    ProtoFile,
    ProtoMap,
    ProtoMessage,
    ProtoOneof,
)
from spbproto.resolve import ProtoParseError, is_scalar_type, resolve_messages


def make_file(*messages, imports=()):
    return ProtoFile(
        content="message content",
        package=ProtoMessage(name="pkg", messages=list(messages)),
        file_imports=list(imports),
    )


def names(messages):
    return [message.name for message in messages]


@pytest.mark.parametrize("name", ["bool", "bytes", "double", "int32", "sfixed64", "string"])
def test_scalar_types(name):
    assert is_scalar_type(name) is True


@pytest.mark.parametrize("name", ["int", "Foo", "", "String", "int32.x"])
def test_non_scalar_types(name):
    assert is_scalar_type(name) is False


def test_empty_file_is_left_alone():
    file = make_file()
    resolve_messages(file)
    assert file.package.messages == []
    assert file.package.resolved == 0


def test_dependency_is_ordered_first():
    a = ProtoMessage(name="A", fields=[ProtoField(name="b", type="B", label=Label.NONE)])
    b = ProtoMessage(name="B", fields=[ProtoField(name="x", type="int32")])
    file = make_file(a, b)
    resolve_messages(file)
    assert names(file.package.messages) == ["B", "A"]
    assert file.package.messages[0].resolved < file.package.messages[1].resolved


def test_all_messages_get_resolved():
    messages = [
        ProtoMessage(name="C", fields=[ProtoField(name="b", type="B", label=Label.NONE)]),
        ProtoMessage(name="B", fields=[ProtoField(name="a", type="A", label=Label.NONE)]),
        ProtoMessage(name="A", fields=[ProtoField(name="s", type="string")]),
    ]
    file = make_file(*messages)
    resolve_messages(file)
    assert names(file.package.messages) == ["A", "B", "C"]
    assert all(message.resolved > 0 for message in file.package.messages)


def test_optional_self_reference_becomes_pointer():
    node = ProtoMessage(name="Node", fields=[ProtoField(name="next", type="Node", label=Label.OPTIONAL)])
    file = make_file(node)
    resolve_messages(file)
    assert file.package.messages[0].fields[0].label is Label.PTR


def test_repeated_self_reference_is_kept():
    node = ProtoMessage(name="Node", fields=[ProtoField(name="kids", type="Node", label=Label.REPEATED)])
    file = make_file(node)
    resolve_messages(file)
    assert file.package.messages[0].fields[0].label is Label.REPEATED


def test_required_self_reference_fails():
    node = ProtoMessage(name="Node", fields=[ProtoField(name="next", type="Node", label=Label.NONE)])
    with pytest.raises(ProtoParseError, match="cannot be self-referencing") as info:
        resolve_messages(make_file(node))
    assert info.value.token == "next"


def test_optional_parent_reference_becomes_pointer():
    inner = ProtoMessage(name="Inner", fields=[ProtoField(name="up", type="Outer", label=Label.OPTIONAL)])
    outer = ProtoMessage(name="Outer", messages=[inner])
    file = make_file(outer)
    resolve_messages(file)
    assert file.package.messages[0].messages[0].fields[0].label is Label.PTR


def test_required_parent_reference_fails():
    inner = ProtoMessage(name="Inner", fields=[ProtoField(name="up", type="Outer", label=Label.NONE)])
    outer = ProtoMessage(name="Outer", messages=[inner])
    with pytest.raises(ProtoParseError, match="cannot reference parent"):
        resolve_messages(make_file(outer))


def test_nested_message_resolved_before_outer():
    inner = ProtoMessage(name="Inner", fields=[ProtoField(name="v", type="uint64")])
    outer = ProtoMessage(
        name="Outer",
        messages=[inner],
        fields=[ProtoField(name="inner", type="Inner", label=Label.NONE)],
    )
    file = make_file(outer)
    resolve_messages(file)
    resolved_outer = file.package.messages[0]
    assert 0 < resolved_outer.messages[0].resolved < resolved_outer.resolved


def test_nested_messages_are_sorted():
    first = ProtoMessage(name="First", fields=[ProtoField(name="s", type="Second", label=Label.NONE)])
    second = ProtoMessage(name="Second")
    outer = ProtoMessage(name="Outer", messages=[first, second])
    file = make_file(outer)
    resolve_messages(file)
    assert names(file.package.messages[0].messages) == ["Second", "First"]


def test_optional_cycle_is_broken_with_one_pointer():
    a = ProtoMessage(name="A", fields=[ProtoField(name="b", type="B", label=Label.OPTIONAL)])
    b = ProtoMessage(name="B", fields=[ProtoField(name="a", type="A", label=Label.OPTIONAL)])
    file = make_file(a, b)
    resolve_messages(file)
    by_name = {message.name: message for message in file.package.messages}
    labels = sorted([by_name["A"].fields[0].label, by_name["B"].fields[0].label])
    assert labels == [Label.OPTIONAL, Label.PTR]
    assert file.package.forwards == {"B"}
    assert names(file.package.messages) == ["A", "B"]


def test_repeated_sibling_is_forwarded():
    a = ProtoMessage(name="A", fields=[ProtoField(name="bs", type="B", label=Label.REPEATED)])
    b = ProtoMessage(name="B", fields=[ProtoField(name="a", type="A", label=Label.NONE)])
    file = make_file(a, b)
    resolve_messages(file)
    assert file.package.forwards == {"B"}
    assert names(file.package.messages) == ["A", "B"]
    assert file.package.messages[0].fields[0].label is Label.REPEATED


def test_required_cycle_fails():
    a = ProtoMessage(name="A", fields=[ProtoField(name="b", type="B", label=Label.NONE)])
    b = ProtoMessage(name="B", fields=[ProtoField(name="a", type="A", label=Label.NONE)])
    with pytest.raises(ProtoParseError, match="type dependency can't be resolved") as info:
        resolve_messages(make_file(a, b))
    assert info.value.token == "A"


def test_unknown_field_type_fails():
    a = ProtoMessage(name="A", fields=[ProtoField(name="x", type="Missing", label=Label.NONE)])
    with pytest.raises(ProtoParseError) as info:
        resolve_messages(make_file(a))
    assert info.value.reason == "type dependency can't be resolved"


def test_enum_field_type_resolves():
    a = ProtoMessage(
        name="A",
        enums=[ProtoEnum(name="Kind")],
        fields=[ProtoField(name="kind", type="Kind", label=Label.NONE)],
    )
    file = make_file(a)
    resolve_messages(file)
    assert file.package.messages[0].resolved > 0


def test_enum_of_parent_resolves():
    inner = ProtoMessage(name="Inner", fields=[ProtoField(name="kind", type="Kind", label=Label.NONE)])
    outer = ProtoMessage(name="Outer", enums=[ProtoEnum(name="Kind")], messages=[inner])
    file = make_file(outer)
    resolve_messages(file)
    assert file.package.messages[0].messages[0].resolved > 0


def test_imported_type_resolves():
    other = ProtoFile(package=ProtoMessage(name="other"))
    a = ProtoMessage(name="A", fields=[ProtoField(name="t", type="other.Thing", label=Label.NONE)])
    file = make_file(a, imports=[other])
    resolve_messages(file)
    assert file.package.messages[0].resolved > 0


def test_import_prefix_must_end_at_dot():
    other = ProtoFile(package=ProtoMessage(name="other"))
    a = ProtoMessage(name="A", fields=[ProtoField(name="t", type="otherx.Thing", label=Label.NONE)])
    with pytest.raises(ProtoParseError):
        resolve_messages(make_file(a, imports=[other]))


def test_map_with_enum_value_resolves():
    a = ProtoMessage(
        name="A",
        enums=[ProtoEnum(name="Kind")],
        maps=[ProtoMap(name="m", key_type="string", value_type="Kind")],
    )
    file = make_file(a)
    resolve_messages(file)
    assert file.package.messages[0].resolved > 0


def test_map_with_unknown_value_fails():
    a = ProtoMessage(name="A", maps=[ProtoMap(name="m", key_type="string", value_type="Missing")])
    with pytest.raises(ProtoParseError):
        resolve_messages(make_file(a))


def test_map_waits_for_sibling_message():
    a = ProtoMessage(name="A", maps=[ProtoMap(name="m", key_type="int32", value_type="B")])
    b = ProtoMessage(name="B")
    file = make_file(a, b)
    resolve_messages(file)
    assert names(file.package.messages) == ["B", "A"]


def test_oneof_with_unknown_type_fails():
    a = ProtoMessage(
        name="A",
        oneofs=[ProtoOneof(name="choice", fields=[ProtoField(name="x", type="Missing")])],
    )
    with pytest.raises(ProtoParseError):
        resolve_messages(make_file(a))


def test_oneof_with_sibling_message_resolves_after_it():
    a = ProtoMessage(
        name="A",
        oneofs=[ProtoOneof(name="choice", fields=[ProtoField(name="b", type="B")])],
    )
    b = ProtoMessage(name="B", fields=[ProtoField(name="s", type="string")])
    file = make_file(a, b)
    resolve_messages(file)
    assert names(file.package.messages) == ["B", "A"]
    assert all(message.resolved > 0 for message in file.package.messages)


def test_field_of_oneof_type_resolves():
    a = ProtoMessage(
        name="A",
        oneofs=[ProtoOneof(name="choice", fields=[ProtoField(name="n", type="int32")])],
        fields=[ProtoField(name="c", type="choice", label=Label.NONE)],
    )
    file = make_file(a)
    resolve_messages(file)
    assert file.package.messages[0].resolved > 0