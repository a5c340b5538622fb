# spbproto

Small, dependency-free tools for working with Protocol Buffers in Python:

- **Wire-format serialization** (`spbproto.wire`, `spbproto.pb`). It covers
  varint, zigzag, fixed-width and length-delimited encoding, packed and
  unpacked repeated fields, maps, absent (`None`) fields, enums and nested
  messages.
- **UTF-8 checking** (`spbproto.utf8`). This module has a table-driven
  decoder (`decode_point`), a validator (`is_valid`, `validate`) and a
  code-point encoder (`encode_point`). Every string field is validated before
  it is written.
- **A `.proto` model** (`spbproto.model`). Dataclasses describe files,
  messages, fields, enums, maps, oneofs, imports and the syntax statement.
- **Type dependency resolution** (`spbproto.resolve`). It orders the messages
  of a `ProtoFile` so that each type comes after the types it depends on.
  Where it can, it breaks a cycle by turning optional fields into pointer
  fields (`Label.PTR`).
- **Output file naming** (`spbproto.naming`). `cpp_file_name_from_proto`
  joins the stem of a `.proto` file name with an extension. For example,
  `"foo.proto"` with `".pb.h"` gives `foo.pb.h`.

## Installation

```
pip install spbproto
```

## Serializing a message

A message subclasses `spbproto.wire.Message` and implements
`serialize_fields`. In that method it writes each of its fields to the
`OutputStream` it is given:

- `stream.serialize(number, value)` writes a value whose encoding follows from
  its type. That covers strings, bytes, bools, enums, nested messages,
  mappings, lists and `None`.
- `stream.serialize_as(encoder, number, value)` writes numbers, lists of
  numbers and maps with numeric keys or values, using an `Encoder` or a
  `ScalarEncoder`.

```python
from dataclasses import dataclass, field

from spbproto import pb
from spbproto.wire import Encoder, Message, ScalarEncoder


@dataclass
class Person(Message):
    name: str = ""
    id: int = 0
    scores: list[int] = field(default_factory=list)

    def serialize_fields(self, stream):
        stream.serialize(1, self.name)
        stream.serialize_as(Encoder(ScalarEncoder.VARINT), 2, self.id)
        stream.serialize_as(Encoder(ScalarEncoder.VARINT, packed=True), 3, self.scores)


person = Person(name="Ann", id=7, scores=[1, 2, 3])
data = pb.to_bytes(person)            # the encoded message as bytes
size = pb.serialize_size(person)      # the encoded length, counted without a buffer
```

The other entry points work as follows:

- `pb.serialize(message, on_write)` passes each encoded chunk to a callable and
  returns the number of bytes written.
- `pb.serialize_into(message, buffer)` replaces the contents of a `bytearray`
  with the encoded message.

Some rules apply to what is written:

- Empty strings and empty bytes are not written.
- Nested messages of size zero are not written.
- Map entries are written in key order.
- A string that is not valid UTF-8 raises `ValueError`.
- A plain number passed to `serialize` raises `TypeError`, because numbers need
  an encoder.

## Resolving message order

```python
from spbproto.model import Label, ProtoField, ProtoFile, ProtoMessage
from spbproto.resolve import resolve_messages

file = ProtoFile()
file.package.messages = [
    ProtoMessage(name="A", fields=[ProtoField(name="b", type="B", label=Label.NONE)]),
    ProtoMessage(name="B"),
]
resolve_messages(file)
print([m.name for m in file.package.messages])   # ['B', 'A']
```

A dependency that cannot be resolved raises `spbproto.resolve.ProtoParseError`.
Examples are a required field that refers to its own message or to its
enclosing message, and a cycle that no optional field can break.
`is_scalar_type(name)` tells whether a type name is one of the protobuf scalar
types.

## What this package does not do

- It does not read `.proto` files. You build the `ProtoFile` tree yourself.
- It does not generate code.
- It does not decode protobuf data. Serialization works in one direction only.
- It has no JSON encoding.
- It has no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```