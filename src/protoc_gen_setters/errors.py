from __future__ import annotations

from typing import Optional


class ConfigError(Exception):
    """Raised when plugin parameters cannot be understood."""


class MalformedDescriptorError(Exception):
    """Raised when the descriptor tree violates a structural precondition.

    Examples are a map field whose entry message does not have exactly two
    fields, a field kind outside the known set, or a type reference that
    does not resolve to any loaded message or enum. ``location`` is the
    full proto name of the offending element, e.g. ``pkg.Message.field``.
    """

    def __init__(self, location: str, reason: str):
        super().__init__(f"{location}: {reason}")
        self.location = location
        self.reason = reason


class RenderError(Exception):
    """Raised when a mutator template fails to render."""


class GenerationError(Exception):
    """Raised when generation for a single file fails.

    Wraps the underlying error with the file, message and field that were
    being processed so the failure can be located without a traceback.
    """

    def __init__(
        self,
        file_name: str,
        cause: Exception,
        message: Optional[str] = None,
        field: Optional[str] = None,
    ):
        location = file_name
        if message:
            location += f": message {message}"
        if field:
            location += f", field {field}"
        super().__init__(f"{location}: {cause}")
        self.file_name = file_name
        self.message = message
        self.field = field
        self.cause = cause
