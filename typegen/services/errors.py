from __future__ import annotations


class TypegenError(Exception):
    """Base class for schema compilation failures."""


class UnsupportedTypeError(TypegenError):
    def __init__(self, raw_type: str) -> None:
        super().__init__(f"Unsupported column type: {raw_type}")
        self.raw_type = raw_type


class SchemaParseError(TypegenError):
    pass


class ConfigurationError(TypegenError):
    pass
