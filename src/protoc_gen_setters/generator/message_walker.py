from __future__ import annotations

from typing import List, Set

from protoc_gen_setters.errors import GenerationError, MalformedDescriptorError, RenderError
from protoc_gen_setters.generator.generated_file import GeneratedFile
from protoc_gen_setters.generator.mutators import (
    Mutator,
    build_field_mutators,
    build_oneof_case_mutator,
    is_union_member,
    render,
)
from protoc_gen_setters.models import Field, Message


class MessageWalker:
    """Emit mutators for a message tree into one generated file.

    Nested messages come first, then oneof members, then the remaining
    fields, each in declaration order. Every message is visited at most
    once per walker, keyed by its full proto name.
    """

    def __init__(self, g: GeneratedFile, source_file: str):
        self.g = g
        self.source_file = source_file
        self.visited: Set[str] = set()

    def walk(self, message: Message) -> None:
        if message.full_name in self.visited:
            return
        self.visited.add(message.full_name)

        for nested in message.messages:
            if nested.is_map_entry:
                continue
            self.walk(nested)

        for oneof in message.oneofs:
            for field in oneof.fields:
                if is_union_member(field):
                    self._emit_field(message, field)

        for field in message.fields:
            if not is_union_member(field):
                self._emit_field(message, field)

    def _emit_field(self, message: Message, field: Field) -> None:
        try:
            mutators: List[Mutator]
            if is_union_member(field):
                mutators = [build_oneof_case_mutator(field, self.g)]
            else:
                mutators = build_field_mutators(field, self.g)
            for mutator in mutators:
                self.g.P(render(mutator))
                self.g.P()
        except (MalformedDescriptorError, RenderError) as e:
            raise GenerationError(
                self.source_file, e, message=message.full_name, field=field.name
            ) from e
