from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from protoc_gen_setters.errors import ConfigError

PATHS_IMPORT = "import"
PATHS_SOURCE_RELATIVE = "source_relative"


@dataclass(frozen=True)
class GeneratorOptions:
    """Settings passed to the plugin through the protoc parameter string.

    ``paths`` selects where output files are placed: next to the Go import
    path (``import``) or next to the .proto file (``source_relative``).
    ``import_paths`` holds ``M<proto file>=<go import path>[;<name>]``
    overrides, kept unsplit like a ``go_package`` option.
    """

    paths: str = PATHS_IMPORT
    import_paths: Dict[str, str] = field(default_factory=dict)


def parse_parameter(parameter: str) -> GeneratorOptions:
    """Parse ``key=value,key=value`` into GeneratorOptions."""
    paths = PATHS_IMPORT
    import_paths: Dict[str, str] = {}
    if not parameter:
        return GeneratorOptions(paths=paths, import_paths=import_paths)

    for chunk in parameter.split(","):
        if not chunk:
            continue
        key, _, value = chunk.partition("=")
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if key == "paths":
            if value not in (PATHS_IMPORT, PATHS_SOURCE_RELATIVE):
                raise ConfigError(f'invalid value for "paths": "{value}"')
            paths = value
        elif key.startswith("M"):
            if not value:
                raise ConfigError(f'missing import path for "{key[1:]}"')
            import_paths[key[1:]] = value
        else:
            raise ConfigError(f'unknown parameter "{key}"')

    return GeneratorOptions(paths=paths, import_paths=import_paths)
