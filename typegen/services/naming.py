from __future__ import annotations

import re

WORD_SEPARATOR_PATTERN = re.compile(r"[\s_\-.]+")
UPPER_CHAR_PATTERN = re.compile(r"([A-Z])")
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def pascal_case(name: str) -> str:
    words = [word for word in WORD_SEPARATOR_PATTERN.split(name) if word]
    parts = []
    for word in words:
        if word.isupper():
            word = word.lower()
        parts.append(word[0].upper() + word[1:])
    return "".join(parts)


def camel_case(name: str) -> str:
    pascal = pascal_case(name)
    if not pascal:
        return pascal
    return pascal[0].lower() + pascal[1:]


def snake_case(name: str) -> str:
    snake = UPPER_CHAR_PATTERN.sub(r"_\1", name).lower()
    if snake.startswith("_"):
        snake = snake[1:]
    return snake


def is_identifier(name: str) -> bool:
    return bool(IDENTIFIER_PATTERN.match(name))


def property_key(name: str) -> str:
    """Quote a property key that is not a bare TypeScript identifier."""
    if is_identifier(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
