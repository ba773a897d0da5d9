# Provides a context manager for timing encoding stages.

"""
Extended Description:
Wraps one stage of the encoding pipeline (statistics build, merge, encode,
...) and logs its wall-clock duration at debug level when the block exits,
whether it exits normally or through an exception.
"""

import contextlib
import logging
import time
from typing import Generator, Optional

logger = logging.getLogger(__name__)

@contextlib.contextmanager
def timer_context_manager(block_name: Optional[str] = None) -> Generator[None, None, None]:
    """A context manager to time a code block.

    Args:
        block_name (Optional[str], optional): An optional name for the code block
                                            to include in the log message.
                                            Defaults to None.

    Yields:
        Generator[None, None, None]: Yields control to the code block.

    Example:
        >>> with timer_context_manager("merge_encodings"):
        ...     merged = merge_encodings(frame, encodings, 'cat')
        # Logs (DEBUG): Stage 'merge_encodings' executed in 0.004 seconds
    """
    start_time = time.perf_counter()
    prefix = f"Stage '{block_name}'" if block_name else "Code block"
    try:
        yield
    finally:
        elapsed_time = time.perf_counter() - start_time
        logger.debug(f"{prefix} executed in {elapsed_time:.3f} seconds")
