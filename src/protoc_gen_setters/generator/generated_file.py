from __future__ import annotations

import posixpath
from typing import Dict, List, Optional, Set

from protoc_gen_setters.models import GoIdent
from protoc_gen_setters.parser.go_names import clean_package_name

METHOD_SCOPE_NAMES = ("x", "in", "key", "val")


class GeneratedFile:
    """A Go source file under construction.

    Text is accumulated with :meth:`P`. Identifiers from other Go packages
    are written through :meth:`qualified_go_ident`, which records the import;
    the import block is inserted after the package clause by :meth:`content`.
    """

    def __init__(
        self,
        filename: str,
        go_import_path: str,
        package_names: Optional[Dict[str, str]] = None,
    ):
        self.filename = filename
        self.go_import_path = go_import_path
        self._known_package_names = package_names or {}
        self._lines: List[str] = []
        self._package_names: Dict[str, str] = {}
        # Receiver and parameter names shadow packages inside method bodies.
        self._used_package_names: Set[str] = set(METHOD_SCOPE_NAMES)

    def P(self, *args) -> None:
        """Append the concatenated string forms of ``args``.

        Embedded newlines are split so every stored entry is one source line.
        """
        self._lines.extend("".join(str(a) for a in args).split("\n"))

    def qualified_go_ident(self, ident: GoIdent) -> str:
        if ident.go_import_path == self.go_import_path:
            return ident.go_name
        if ident.go_import_path in self._package_names:
            return f"{self._package_names[ident.go_import_path]}.{ident.go_name}"

        base = self._known_package_names.get(ident.go_import_path)
        if base is None:
            base = clean_package_name(posixpath.basename(ident.go_import_path))
        name = base
        i = 1
        while name in self._used_package_names:
            name = f"{base}{i}"
            i += 1
        self._package_names[ident.go_import_path] = name
        self._used_package_names.add(name)
        return f"{name}.{ident.go_name}"

    def imports(self) -> List[str]:
        """Import specs in Go source form, sorted by import path."""
        specs = []
        for path in sorted(self._package_names):
            name = self._package_names[path]
            if name == clean_package_name(posixpath.basename(path)):
                specs.append(f'"{path}"')
            else:
                specs.append(f'{name} "{path}"')
        return specs

    def content(self) -> str:
        lines = list(self._lines)
        specs = self.imports()
        if specs:
            block = ["", "import ("] + [f"\t{spec}" for spec in specs] + [")"]
            for i, line in enumerate(lines):
                if line.startswith("package "):
                    lines[i + 1:i + 1] = block
                    break
            else:
                lines = block + lines
        return "\n".join(lines).rstrip("\n") + "\n"
