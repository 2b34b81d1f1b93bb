from __future__ import annotations
from enum import Enum

class ErrorKind(str, Enum):
    SHAPE_MISMATCH = "shape_mismatch"
    INSUFFICIENT_DATA = "insufficient_data"
    DIMENSION_MISMATCH = "dimension_mismatch"
    SINGULAR_SYSTEM = "singular_system"

class TPSError(Exception):
    """Base class of every failure raised by the interpolator."""
    kind: ErrorKind

class ShapeMismatchError(TPSError, ValueError):
    kind = ErrorKind.SHAPE_MISMATCH

class InsufficientDataError(TPSError, ValueError):
    kind = ErrorKind.INSUFFICIENT_DATA

class DimensionMismatchError(TPSError, ValueError):
    kind = ErrorKind.DIMENSION_MISMATCH

class SingularSystemError(TPSError, ArithmeticError):
    kind = ErrorKind.SINGULAR_SYSTEM
