"""Build the resolved Go-flavoured descriptor tree from descriptor protos."""

from __future__ import annotations

import posixpath
from typing import Dict, Iterable, List, Optional

from google.protobuf import descriptor_pb2

from protoc_gen_setters.errors import MalformedDescriptorError
from protoc_gen_setters.models import (
    Cardinality,
    Enum,
    Field,
    GoFile,
    GoIdent,
    Kind,
    Message,
    Oneof,
)
from protoc_gen_setters.options import PATHS_SOURCE_RELATIVE, GeneratorOptions
from protoc_gen_setters.parser.go_names import (
    RESERVED_METHOD_NAMES,
    default_import_path,
    go_camel_case,
    package_name_for,
    split_go_package,
)


class Registry:
    """Messages and enums of every loaded file, keyed by full proto name."""

    def __init__(self):
        self.messages: Dict[str, Message] = {}
        self.enums: Dict[str, Enum] = {}

    def register_message(self, message: Message) -> None:
        self.messages[message.full_name] = message
        for nested in message.messages:
            self.register_message(nested)
        for enum in message.enums:
            self.enums[enum.full_name] = enum

    def lookup(self, scope: str, type_name: str, table: Dict):
        """Find ``type_name`` as protoc would, searching outward from ``scope``."""
        if type_name.startswith("."):
            return table.get(type_name[1:])
        parts = scope.split(".") if scope else []
        while True:
            candidate = ".".join(parts + [type_name])
            if candidate in table:
                return table[candidate]
            if not parts:
                return None
            parts.pop()


def _strip_proto_suffix(name: str) -> str:
    if name.endswith(".proto"):
        return name[: -len(".proto")]
    return name


def _relative_name(full_name: str, package: str) -> str:
    if package and full_name.startswith(package + "."):
        return full_name[len(package) + 1:]
    return full_name


class DescriptorLoader:
    """Normalize FileDescriptorProtos into GoFile trees.

    Files must be supplied in dependency order, which is how protoc fills
    ``CodeGeneratorRequest.proto_file``.
    """

    def __init__(
        self,
        proto_files: Iterable[descriptor_pb2.FileDescriptorProto],
        files_to_generate: Iterable[str],
        options: Optional[GeneratorOptions] = None,
    ):
        self.proto_files = list(proto_files)
        self.files_to_generate = list(files_to_generate)
        self.options = options or GeneratorOptions()
        self.registry = Registry()
        self.files: Dict[str, GoFile] = {}

    def load(self) -> List[GoFile]:
        """Build, register and resolve every file.

        Returns the files selected for generation, in request order.
        """
        pending = []
        for proto in self.proto_files:
            go_file = self._build_file(proto)
            self.files[proto.name] = go_file
            for message in go_file.messages:
                self.registry.register_message(message)
            for enum in go_file.enums:
                self.registry.enums[enum.full_name] = enum
            pending.append((go_file, proto))

        for go_file, proto in pending:
            for message, message_proto in zip(go_file.messages, proto.message_type):
                self._resolve_message(message, message_proto, proto)

        selected = []
        for name in self.files_to_generate:
            if name not in self.files:
                raise MalformedDescriptorError(name, "file to generate was not supplied")
            selected.append(self.files[name])
        return selected

    def get_file(self, name: str) -> GoFile:
        return self.files[name]

    # -- construction -------------------------------------------------------

    def _build_file(self, proto: descriptor_pb2.FileDescriptorProto) -> GoFile:
        explicit_name = None
        if proto.name in self.options.import_paths:
            import_path, explicit_name = split_go_package(self.options.import_paths[proto.name])
        elif proto.options.go_package:
            import_path, explicit_name = split_go_package(proto.options.go_package)
        else:
            import_path = default_import_path(proto.name)
        package_name = package_name_for(import_path, explicit_name, proto.package)

        stem = _strip_proto_suffix(proto.name)
        if self.options.paths == PATHS_SOURCE_RELATIVE:
            prefix = stem
        else:
            prefix = posixpath.normpath(posixpath.join(import_path, posixpath.basename(stem)))

        go_file = GoFile(
            name=proto.name,
            package=proto.package,
            go_import_path=import_path,
            go_package_name=package_name,
            generated_filename_prefix=prefix,
            generate=proto.name in self.files_to_generate,
        )
        for enum_proto in proto.enum_type:
            go_file.enums.append(self._build_enum(enum_proto, go_file, None))
        for message_proto in proto.message_type:
            go_file.messages.append(self._build_message(message_proto, go_file, None))
        return go_file

    def _build_enum(self, proto, go_file: GoFile, parent: Optional[Message]) -> Enum:
        scope = parent.full_name if parent else go_file.package
        full_name = f"{scope}.{proto.name}" if scope else proto.name
        go_name = go_camel_case(_relative_name(full_name, go_file.package))
        return Enum(
            full_name=full_name,
            go_ident=GoIdent(go_file.go_import_path, go_name),
            parent_file=go_file,
        )

    def _build_message(self, proto, go_file: GoFile, parent: Optional[Message]) -> Message:
        scope = parent.full_name if parent else go_file.package
        full_name = f"{scope}.{proto.name}" if scope else proto.name
        go_name = go_camel_case(_relative_name(full_name, go_file.package))
        message = Message(
            full_name=full_name,
            go_ident=GoIdent(go_file.go_import_path, go_name),
            is_map_entry=proto.options.map_entry,
            parent_file=go_file,
            parent=parent,
        )

        for oneof_proto in proto.oneof_decl:
            message.oneofs.append(
                Oneof(
                    name=oneof_proto.name,
                    go_name=go_camel_case(oneof_proto.name),
                    go_ident=GoIdent(go_file.go_import_path, ""),
                    parent=message,
                )
            )

        for field_proto in proto.field:
            message.fields.append(self._build_field(field_proto, message))

        for nested_proto in proto.nested_type:
            message.messages.append(self._build_message(nested_proto, go_file, message))
        for enum_proto in proto.enum_type:
            message.enums.append(self._build_enum(enum_proto, go_file, message))

        _assign_go_names(message)
        return message

    def _build_field(self, proto: descriptor_pb2.FieldDescriptorProto, message: Message) -> Field:
        full_name = f"{message.full_name}.{proto.name}"
        try:
            kind = Kind(proto.type)
        except ValueError:
            raise MalformedDescriptorError(full_name, f"unknown field kind {proto.type}") from None
        try:
            cardinality = Cardinality(proto.label)
        except ValueError:
            raise MalformedDescriptorError(full_name, f"unknown field label {proto.label}") from None

        oneof = None
        if proto.HasField("oneof_index"):
            if proto.oneof_index >= len(message.oneofs):
                raise MalformedDescriptorError(
                    full_name, f"oneof index {proto.oneof_index} out of range"
                )
            oneof = message.oneofs[proto.oneof_index]

        field = Field(
            name=proto.name,
            go_name=go_camel_case(proto.name),
            full_name=full_name,
            kind=kind,
            cardinality=cardinality,
            type_name=proto.type_name,
            is_weak=proto.options.weak,
            parent=message,
            oneof=oneof,
        )
        if oneof is not None:
            oneof.fields.append(field)
        return field

    # -- resolution ---------------------------------------------------------

    def _resolve_message(self, message: Message, proto, file_proto) -> None:
        for nested, nested_proto in zip(message.messages, proto.nested_type):
            self._resolve_message(nested, nested_proto, file_proto)

        for field, field_proto in zip(message.fields, proto.field):
            if field.kind in (Kind.MESSAGE, Kind.GROUP):
                if not field.type_name:
                    raise MalformedDescriptorError(field.full_name, "message field has no type name")
                field.message = self.registry.lookup(
                    message.full_name, field.type_name, self.registry.messages
                )
                if field.message is None:
                    raise MalformedDescriptorError(
                        field.full_name, f'cannot resolve message type "{field.type_name}"'
                    )
            elif field.kind == Kind.ENUM:
                if not field.type_name:
                    raise MalformedDescriptorError(field.full_name, "enum field has no type name")
                field.enum = self.registry.lookup(
                    message.full_name, field.type_name, self.registry.enums
                )
                if field.enum is None:
                    raise MalformedDescriptorError(
                        field.full_name, f'cannot resolve enum type "{field.type_name}"'
                    )

            field.has_optional_keyword = _has_optional_keyword(field, field_proto, file_proto)
            field.has_presence = _has_presence(field, field_proto, proto, file_proto)


def _assign_go_names(message: Message) -> None:
    """Make field and oneof Go names unique within the generated struct."""
    used: Dict[str, bool] = {name: True for name in RESERVED_METHOD_NAMES}

    def make_unique(name: str, has_getter: bool) -> str:
        while used.get(name) or (has_getter and used.get("Get" + name)):
            name += "_"
        used[name] = True
        used["Get" + name] = has_getter
        return name

    import_path = message.go_ident.go_import_path
    for field in message.fields:
        field.go_name = make_unique(field.go_name, True)
        field.go_ident = GoIdent(import_path, f"{message.go_ident.go_name}_{field.go_name}")
        if field.oneof is not None and field.oneof.fields[0] is field:
            field.oneof.go_name = make_unique(field.oneof.go_name, False)
            field.oneof.go_ident = GoIdent(
                import_path, f"{message.go_ident.go_name}_{field.oneof.go_name}"
            )

    # Oneof wrapper structs share a namespace with nested types.
    taken = {m.go_ident for m in message.messages} | {e.go_ident for e in message.enums}
    for field in message.fields:
        if field.oneof is None:
            continue
        while field.go_ident in taken:
            field.go_ident = GoIdent(import_path, field.go_ident.go_name + "_")


def _syntax(file_proto) -> str:
    return file_proto.syntax or "proto2"


def _has_optional_keyword(field: Field, field_proto, file_proto) -> bool:
    if field_proto.proto3_optional:
        return True
    return (
        _syntax(file_proto) == "proto2"
        and field.cardinality == Cardinality.OPTIONAL
        and field.oneof is None
    )


def _implicit_presence(field_proto, message_proto, file_proto) -> bool:
    """Resolve the editions ``field_presence`` feature for a field."""
    for options in (field_proto.options, message_proto.options, file_proto.options):
        if options.HasField("features") and options.features.HasField("field_presence"):
            return options.features.field_presence == descriptor_pb2.FeatureSet.IMPLICIT
    return False


def _has_presence(field: Field, field_proto, message_proto, file_proto) -> bool:
    if field.cardinality == Cardinality.REPEATED:
        return False
    if field.kind in (Kind.MESSAGE, Kind.GROUP) or field.oneof is not None:
        return True
    syntax = _syntax(file_proto)
    if syntax == "proto3":
        return field_proto.proto3_optional
    if syntax == "editions":
        return not _implicit_presence(field_proto, message_proto, file_proto)
    return True
