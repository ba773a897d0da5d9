# Exception hierarchy for target encoding operations.

"""
Extended Description:
Every error raised on purpose by the package derives from TargetEncodingError
and records the operation that failed and, when relevant, the column involved.
Degenerate data (zero denominators, empty statistics tables) is not an error
and never raises.
"""

from typing import Optional, Union


class TargetEncodingError(Exception):
    """Base exception for all target encoding errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        column: Optional[Union[int, str]] = None
    ) -> None:
        self.operation = operation
        self.column = column
        context = []
        if operation is not None:
            context.append(f"operation={operation}")
        if column is not None:
            context.append(f"column={column!r}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


class PreconditionError(TargetEncodingError, ValueError):
    """An operation was called with inputs that violate its contract."""


class StageExecutionError(TargetEncodingError):
    """A partition task failed, so the whole stage failed."""


class UniqueValuesOverflowError(TargetEncodingError, OverflowError):
    """Number of distinct values does not fit in an index."""
