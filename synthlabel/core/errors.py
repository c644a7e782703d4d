"""Exception types raised by the capture/export pipeline.

Each class also derives from the builtin a caller would otherwise expect
(``ValueError`` for bad input, ``RuntimeError`` for runtime faults).
"""

from __future__ import annotations


class SynthLabelError(Exception):
    """Base class for all synthlabel errors."""


class PreconditionError(SynthLabelError, ValueError):
    """A sweep was requested with inputs that make it impossible to start."""


class RendererUnavailableError(SynthLabelError, RuntimeError):
    """The renderer (or its camera) cannot be used; the sweep is aborted."""


class CaptureError(SynthLabelError, RuntimeError):
    """A single render/read-back failed; the sweep skips that capture."""


class AnnotationImportError(SynthLabelError, ValueError):
    """An imported annotation document is missing fields or malformed."""


class ExportError(SynthLabelError, RuntimeError):
    """Exporting or packaging a generation run failed."""


class SceneBusyError(SynthLabelError, RuntimeError):
    """Another sweep already holds the scene."""
