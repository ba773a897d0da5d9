import pytest

from te_utils.other_exceptions import (
    PreconditionError,
    StageExecutionError,
    TargetEncodingError,
    UniqueValuesOverflowError,
)

def test_context_in_message():
    """Operation and column are stored and appended to the message."""
    error = PreconditionError("Column is not categorical.", operation='domain', column='x')
    assert error.operation == 'domain'
    assert error.column == 'x'
    assert str(error) == "Column is not categorical. [operation=domain, column='x']"

def test_message_without_context():
    error = StageExecutionError("Partition failed.")
    assert str(error) == "Partition failed."
    assert error.operation is None and error.column is None

def test_hierarchy():
    """Errors can be caught as the package base class or as builtin categories."""
    assert issubclass(PreconditionError, ValueError)
    assert issubclass(UniqueValuesOverflowError, OverflowError)
    for error_cls in (PreconditionError, StageExecutionError, UniqueValuesOverflowError):
        with pytest.raises(TargetEncodingError):
            raise error_cls("failure", operation='test')
