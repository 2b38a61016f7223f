from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from protoc_gen_setters.errors import RenderError
from protoc_gen_setters.generator.generated_file import GeneratedFile
from protoc_gen_setters.generator.type_resolver import resolve
from protoc_gen_setters.models import Field, Oneof


class Shape(enum.Enum):
    PLAIN = "plain"
    APPEND = "append"
    MAP_ENTRY = "map_entry"
    ONEOF_CASE = "oneof_case"


@dataclass(frozen=True)
class Mutator:
    """One mutator method to emit, with every name already resolved."""

    shape: Shape
    message_name: str
    field_name: str
    param_type: str
    element_type: Optional[str] = None
    key_type: Optional[str] = None
    value_type: Optional[str] = None
    oneof_name: Optional[str] = None
    wrapper_name: Optional[str] = None


def is_union_member(field: Field) -> bool:
    """Whether the field is set through its oneof rather than directly.

    Fields declared with ``optional`` live in a synthetic oneof but are
    plain struct fields in the generated Go code.
    """
    return field.oneof is not None and not field.has_optional_keyword


def build_field_mutators(field: Field, g: GeneratedFile) -> List[Mutator]:
    """Mutators for a field that is assigned directly on the message struct."""
    resolved = resolve(field, g)
    message_name = field.parent.go_ident.go_name

    mutators = [
        Mutator(
            shape=Shape.PLAIN,
            message_name=message_name,
            field_name=field.go_name,
            param_type=resolved.param_type,
        )
    ]
    if resolved.element is not None:
        mutators.append(
            Mutator(
                shape=Shape.APPEND,
                message_name=message_name,
                field_name=field.go_name,
                param_type=resolved.name,
                element_type=resolved.element.name,
            )
        )
    if resolved.key is not None:
        mutators.append(
            Mutator(
                shape=Shape.MAP_ENTRY,
                message_name=message_name,
                field_name=field.go_name,
                param_type=resolved.name,
                key_type=resolved.key.name,
                value_type=resolved.value.name,
            )
        )
    return mutators


def build_oneof_case_mutator(field: Field, g: GeneratedFile) -> Mutator:
    """Mutator storing ``field`` as the active case of its oneof."""
    resolved = resolve(field, g)
    return Mutator(
        shape=Shape.ONEOF_CASE,
        message_name=field.parent.go_ident.go_name,
        field_name=field.go_name,
        # The wrapper struct holds the value, never a pointer to it.
        param_type=resolved.name,
        oneof_name=field.oneof.go_name,
        wrapper_name=field.go_ident.go_name,
    )


def build_oneof_mutators(oneof: Oneof, g: GeneratedFile) -> List[Mutator]:
    return [
        build_oneof_case_mutator(field, g)
        for field in oneof.fields
        if is_union_member(field)
    ]


@lru_cache(maxsize=None)
def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render_template(template_name: str, **context) -> str:
    env = _get_template_env()
    try:
        template = env.get_template(template_name)
        return template.render(**context).rstrip("\n")
    except TemplateError as e:
        raise RenderError(f"rendering {template_name} failed: {e}") from e


def render_plain(m: Mutator) -> str:
    return render_template(
        "setter.go.j2",
        message_name=m.message_name,
        field_name=m.field_name,
        param_type=m.param_type,
    )


def render_append(m: Mutator) -> str:
    return render_template(
        "append.go.j2",
        message_name=m.message_name,
        field_name=m.field_name,
        param_type=m.param_type,
        element_type=m.element_type,
    )


def render_map_entry(m: Mutator) -> str:
    return render_template(
        "map_entry.go.j2",
        message_name=m.message_name,
        field_name=m.field_name,
        param_type=m.param_type,
        key_type=m.key_type,
        value_type=m.value_type,
    )


def render_oneof_case(m: Mutator) -> str:
    return render_template(
        "oneof_case.go.j2",
        message_name=m.message_name,
        field_name=m.field_name,
        param_type=m.param_type,
        oneof_name=m.oneof_name,
        wrapper_name=m.wrapper_name,
    )


RENDERERS: Dict[Shape, Callable[[Mutator], str]] = {
    Shape.PLAIN: render_plain,
    Shape.APPEND: render_append,
    Shape.MAP_ENTRY: render_map_entry,
    Shape.ONEOF_CASE: render_oneof_case,
}


def render(mutator: Mutator) -> str:
    """Render a mutator to Go source."""
    renderer = RENDERERS.get(mutator.shape)
    if renderer is None:
        raise RenderError(f"no renderer for mutator shape {mutator.shape!r}")
    return renderer(mutator)
