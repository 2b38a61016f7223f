from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from protoc_gen_setters.errors import MalformedDescriptorError
from protoc_gen_setters.generator.generated_file import GeneratedFile
from protoc_gen_setters.models import Field, Kind

# Proto scalar kind -> Go type
SCALAR_GO_TYPES: Dict[Kind, str] = {
    Kind.BOOL: "bool",
    Kind.INT32: "int32",
    Kind.SINT32: "int32",
    Kind.SFIXED32: "int32",
    Kind.UINT32: "uint32",
    Kind.FIXED32: "uint32",
    Kind.INT64: "int64",
    Kind.SINT64: "int64",
    Kind.SFIXED64: "int64",
    Kind.UINT64: "uint64",
    Kind.FIXED64: "uint64",
    Kind.FLOAT: "float32",
    Kind.DOUBLE: "float64",
    Kind.STRING: "string",
    Kind.BYTES: "[]byte",
}

WEAK_GO_TYPE = "struct{}"


@dataclass(frozen=True)
class ResolvedType:
    """The Go type a setter accepts for a field.

    ``by_reference`` means the setter takes ``*name``. List types carry their
    ``element`` type and map types their ``key`` and ``value`` types, so the
    variadic and map-entry mutators never have to pick apart ``name``.
    """

    name: str
    by_reference: bool = False
    element: Optional[ResolvedType] = None
    key: Optional[ResolvedType] = None
    value: Optional[ResolvedType] = None

    @property
    def param_type(self) -> str:
        if self.by_reference:
            return "*" + self.name
        return self.name


def _base_type(field: Field, g: GeneratedFile) -> ResolvedType:
    by_reference = field.has_presence
    kind = field.kind

    if kind in SCALAR_GO_TYPES:
        if kind == Kind.BYTES:
            # Presence of bytes is carried by the nil slice.
            by_reference = False
        return ResolvedType(SCALAR_GO_TYPES[kind], by_reference)

    if kind == Kind.ENUM:
        if field.enum is None:
            raise MalformedDescriptorError(field.full_name, "enum field is not resolved")
        name = field.enum.go_ident.go_name
        # Only qualify enums that live in another Go package.
        if field.enum.go_ident.go_import_path != field.parent.go_ident.go_import_path:
            name = g.qualified_go_ident(field.enum.go_ident)
        return ResolvedType(name, by_reference)

    if kind in (Kind.MESSAGE, Kind.GROUP):
        if field.message is None:
            raise MalformedDescriptorError(field.full_name, "message field is not resolved")
        name = field.message.go_ident.go_name
        if field.message.go_ident.go_import_path != field.parent.go_ident.go_import_path:
            name = g.qualified_go_ident(field.message.go_ident)
        # The pointer is part of the type name.
        return ResolvedType("*" + name, False)

    raise MalformedDescriptorError(field.full_name, f"unsupported field kind {kind!r}")


def resolve(field: Field, g: GeneratedFile) -> ResolvedType:
    """Resolve the Go type and pointer-ness of a setter parameter for ``field``."""
    if field.is_weak:
        return ResolvedType(WEAK_GO_TYPE, False)

    if field.is_map():
        entry = field.message
        if len(entry.fields) != 2:
            raise MalformedDescriptorError(
                field.full_name,
                f"map entry {entry.full_name} has {len(entry.fields)} fields, expected 2",
            )
        key = resolve(field.map_key(), g)
        value = resolve(field.map_value(), g)
        return ResolvedType(f"map[{key.name}]{value.name}", False, key=key, value=value)

    base = _base_type(field, g)
    if field.is_list():
        element = ResolvedType(base.name, False)
        return ResolvedType("[]" + element.name, False, element=element)
    return base
