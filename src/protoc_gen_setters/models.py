from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional


class Kind(enum.Enum):
    """Field value kinds, numbered as in FieldDescriptorProto.Type."""

    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    GROUP = 10
    MESSAGE = 11
    BYTES = 12
    UINT32 = 13
    ENUM = 14
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18


class Cardinality(enum.Enum):
    OPTIONAL = 1
    REQUIRED = 2
    REPEATED = 3


@dataclass(frozen=True)
class GoIdent:
    """A Go identifier together with the import path of its package."""

    go_import_path: str
    go_name: str


@dataclass(eq=False)
class Enum:
    full_name: str
    go_ident: GoIdent
    parent_file: Optional[GoFile] = None


@dataclass(eq=False)
class Oneof:
    name: str
    go_name: str
    go_ident: GoIdent
    parent: Optional[Message] = None
    fields: List[Field] = field(default_factory=list)


@dataclass(eq=False)
class Field:
    name: str
    go_name: str
    full_name: str
    kind: Kind
    cardinality: Cardinality = Cardinality.OPTIONAL
    type_name: str = ""
    has_presence: bool = False
    has_optional_keyword: bool = False
    is_weak: bool = False
    parent: Optional[Message] = None
    oneof: Optional[Oneof] = None
    message: Optional[Message] = None
    enum: Optional[Enum] = None
    # Wrapper struct used when the field is a oneof member.
    go_ident: Optional[GoIdent] = None

    def is_map(self) -> bool:
        return (
            self.cardinality == Cardinality.REPEATED
            and self.message is not None
            and self.message.is_map_entry
        )

    def is_list(self) -> bool:
        return self.cardinality == Cardinality.REPEATED and not self.is_map()

    def map_key(self) -> Optional[Field]:
        if not self.is_map():
            return None
        return self.message.fields[0]

    def map_value(self) -> Optional[Field]:
        if not self.is_map():
            return None
        return self.message.fields[1]


@dataclass(eq=False)
class Message:
    """A message definition, possibly containing nested messages."""

    full_name: str
    go_ident: GoIdent
    is_map_entry: bool = False
    parent_file: Optional[GoFile] = None
    parent: Optional[Message] = None
    fields: List[Field] = field(default_factory=list)
    oneofs: List[Oneof] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)


@dataclass(eq=False)
class GoFile:
    """A resolved .proto file and the Go package its code lands in."""

    name: str
    package: str
    go_import_path: str
    go_package_name: str
    generated_filename_prefix: str
    generate: bool = False
    messages: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
