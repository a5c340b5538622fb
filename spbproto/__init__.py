"""Protocol buffer wire-format serialization, UTF-8 checking, a .proto model and type resolution."""

__version__ = "1.0.0"
__all__ = ["model", "naming", "pb", "resolve", "utf8", "wire"]