from .config import ParserOptions, TransformConfig
from .errors import IdrefStripError, InvariantViolation, MalformedInput, WriteFailure
from .models import TransformReport
from .pipeline import remove_idref_values, transform_bytes, transform_file

__all__ = [
    "IdrefStripError",
    "InvariantViolation",
    "MalformedInput",
    "ParserOptions",
    "TransformConfig",
    "TransformReport",
    "WriteFailure",
    "remove_idref_values",
    "transform_bytes",
    "transform_file",
]

__version__ = "0.1.0"
