"""Names of generated files."""

from __future__ import annotations

import os
from pathlib import Path


def cpp_file_name_from_proto(proto_file_path: str | os.PathLike[str], extension: str) -> Path:
    """Return the generated file name for a .proto file.

    The stem of the proto file's name is joined with ``extension``,
    e.g. ``"foo.proto"`` with ``".pb.h"`` gives ``"foo.pb.h"``.
    """
    stem = Path(proto_file_path).stem
    if not stem:
        raise ValueError(f"no file name in path: {os.fspath(proto_file_path)!r}")
    return Path(stem + extension)