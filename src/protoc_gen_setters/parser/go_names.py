"""Go identifier and package naming, as protoc-gen-go derives them."""

from __future__ import annotations

import posixpath
from typing import Optional, Tuple

GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
})

# Methods generated on every message struct; field names must not shadow them.
RESERVED_METHOD_NAMES = (
    "Reset",
    "String",
    "ProtoMessage",
    "Marshal",
    "Unmarshal",
    "ExtensionRangeArray",
    "ExtensionMap",
    "Descriptor",
)


def _is_lower(c: str) -> bool:
    return "a" <= c <= "z"


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def go_camel_case(s: str) -> str:
    """Convert a proto name to a Go CamelCase identifier.

    Dots become underscores unless followed by a lowercase letter, an
    underscore followed by a lowercase letter is dropped and the letter
    upper-cased, and a leading underscore becomes ``X``.
    """
    out = []
    i = 0
    n = len(s)
    while i < n:
        c = s[i]
        if c == "." and i + 1 < n and _is_lower(s[i + 1]):
            pass
        elif c == ".":
            out.append("_")
        elif c == "_" and (i == 0 or s[i - 1] == "."):
            out.append("X")
        elif c == "_" and i + 1 < n and _is_lower(s[i + 1]):
            pass
        elif _is_digit(c):
            out.append(c)
        else:
            if _is_lower(c):
                c = c.upper()
            out.append(c)
            while i + 1 < n and _is_lower(s[i + 1]):
                i += 1
                out.append(s[i])
        i += 1
    return "".join(out)


def go_sanitized(s: str) -> str:
    """Turn an arbitrary string into a valid Go identifier."""
    s = "".join(c if c.isalpha() or c.isdigit() else "_" for c in s)
    if not s or s in GO_KEYWORDS or not s[0].isalpha():
        return "_" + s
    return s


def clean_package_name(name: str) -> str:
    return go_sanitized(name)


def split_go_package(go_package: str) -> Tuple[str, Optional[str]]:
    """Split a ``go_package`` option into import path and explicit name.

    ``"example.com/foo;foopb"`` yields ``("example.com/foo", "foopb")``.
    """
    import_path, sep, name = go_package.partition(";")
    if sep:
        return import_path, name
    return import_path, None


def default_import_path(proto_file_name: str) -> str:
    directory = posixpath.dirname(proto_file_name)
    return directory or "."


def package_name_for(import_path: str, explicit: Optional[str], proto_package: str) -> str:
    """Choose the Go package name for a file."""
    if explicit:
        return clean_package_name(explicit)
    if import_path and import_path != ".":
        return clean_package_name(posixpath.basename(import_path))
    if proto_package:
        return clean_package_name(proto_package.split(".")[-1])
    return "main"
