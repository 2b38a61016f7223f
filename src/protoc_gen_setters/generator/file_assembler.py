from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from protoc_gen_setters.errors import GenerationError, RenderError
from protoc_gen_setters.generator.generated_file import GeneratedFile
from protoc_gen_setters.generator.message_walker import MessageWalker
from protoc_gen_setters.generator.mutators import render_template
from protoc_gen_setters.models import GoFile

GENERATED_FILE_SUFFIX = ".pb.setters.go"


def generated_filename(go_file: GoFile) -> str:
    return go_file.generated_filename_prefix + GENERATED_FILE_SUFFIX


def should_generate(go_file: GoFile) -> bool:
    return go_file.generate and bool(go_file.messages)


def generate_file(
    go_file: GoFile,
    package_names: Optional[Dict[str, str]] = None,
) -> GeneratedFile:
    """Generate the setters file for one proto file.

    The returned file is complete; on failure nothing is returned and a
    GenerationError names the file, message and field involved.
    """
    g = GeneratedFile(generated_filename(go_file), go_file.go_import_path, package_names)
    try:
        g.P(render_template(
            "header.go.j2",
            source=go_file.name,
            package_name=go_file.go_package_name,
        ))
    except RenderError as e:
        raise GenerationError(go_file.name, e) from e
    g.P()

    walker = MessageWalker(g, go_file.name)
    for message in go_file.messages:
        walker.walk(message)
    return g


def generate_files(
    files: Iterable[GoFile],
    all_files: Optional[Iterable[GoFile]] = None,
) -> List[GeneratedFile]:
    """Generate setters for every eligible file, in input order.

    ``all_files`` supplies the Go package names of dependencies so that
    cross-package identifiers are qualified with their declared names.
    """
    files = list(files)
    package_names = {
        f.go_import_path: f.go_package_name
        for f in (all_files if all_files is not None else files)
    }
    generated: List[GeneratedFile] = []
    for go_file in files:
        if not should_generate(go_file):
            continue
        generated.append(generate_file(go_file, package_names))
    return generated
