# Frame class: a partitioned, lockable working dataset.

"""
Extended Description:
Wraps a Polars DataFrame with the bookkeeping the encoding stages need:
columns addressable by index or name, row-contiguous partitions that can be
processed independently, and an exclusive write lock held during structural
changes (appending a column, replacing a column, changing a column's domain).
Readers go through the same lock, so they never observe a half-applied change.

A Frame is owned by whoever created it. `deep_copy()` produces an independent
working copy; `dispose()` (or leaving a `with` block) releases the data.
"""

import contextlib
import math
import threading
import uuid
from typing import Generator, List, Optional, Tuple, Union

import polars as pl

from te_utils.other_exceptions import PreconditionError

ColumnRef = Union[int, str]


def is_categorical_dtype(dtype: pl.DataType) -> bool:
    """True for Enum, Categorical and String columns."""
    return isinstance(dtype, (pl.Enum, pl.Categorical)) or dtype == pl.String


class Frame:
    """A Polars DataFrame split into `n_partitions` row-contiguous partitions."""

    def __init__(
        self,
        df: pl.DataFrame,
        n_partitions: int = 1,
        n_jobs: int = 1,
        key: Optional[str] = None
    ) -> None:
        if not isinstance(df, pl.DataFrame):
            raise TypeError(f"df must be a polars DataFrame, got {type(df).__name__}.")
        if n_partitions < 1:
            raise ValueError(f"n_partitions must be >= 1, got {n_partitions}.")
        self._df: Optional[pl.DataFrame] = df
        self.n_partitions = n_partitions
        self.n_jobs = n_jobs
        self.key = key if key is not None else uuid.uuid4().hex
        self._lock = threading.RLock()

    # --- Lifecycle ---

    @property
    def disposed(self) -> bool:
        return self._df is None

    def dispose(self) -> None:
        """Releases the underlying data. Further access raises."""
        with self._lock:
            self._df = None

    def __enter__(self) -> "Frame":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _require_data(self) -> pl.DataFrame:
        if self._df is None:
            raise PreconditionError(f"Frame {self.key} has been disposed.")
        return self._df

    @contextlib.contextmanager
    def write_lock(self) -> Generator[None, None, None]:
        """Holds the exclusive lock for the duration of a structural change."""
        with self._lock:
            self._require_data()
            yield

    # --- Read access ---

    @property
    def df(self) -> pl.DataFrame:
        with self._lock:
            return self._require_data()

    @property
    def names(self) -> List[str]:
        return self.df.columns

    @property
    def num_cols(self) -> int:
        return self.df.width

    @property
    def num_rows(self) -> int:
        return self.df.height

    def __len__(self) -> int:
        return self.num_rows

    def __repr__(self) -> str:
        if self.disposed:
            return f"Frame(key={self.key!r}, disposed)"
        return (f"Frame(key={self.key!r}, shape={self.df.shape}, "
                f"n_partitions={self.n_partitions})")

    def find(self, name: str) -> int:
        """Index of column `name`, or -1 if absent."""
        names = self.names
        return names.index(name) if name in names else -1

    def name(self, column: ColumnRef) -> str:
        return self.names[self.resolve(column)]

    def resolve(self, column: ColumnRef, operation: Optional[str] = None) -> int:
        """Returns the index of `column` (given by index or name).

        Raises:
            pl.exceptions.ColumnNotFoundError: If the column does not exist.
        """
        names = self.names
        if isinstance(column, bool):
            raise TypeError("column must be an int index or a str name.")
        if isinstance(column, int):
            if 0 <= column < len(names):
                return column
        elif isinstance(column, str):
            if column in names:
                return names.index(column)
        else:
            raise TypeError("column must be an int index or a str name.")
        where = f" (operation={operation})" if operation else ""
        raise pl.exceptions.ColumnNotFoundError(
            f"Column {column!r} not found in frame {self.key}{where}. Columns: {names}"
        )

    def column(self, column: ColumnRef) -> pl.Series:
        return self.df.to_series(self.resolve(column))

    def dtype(self, column: ColumnRef) -> pl.DataType:
        return self.column(column).dtype

    def is_categorical(self, column: ColumnRef) -> bool:
        return is_categorical_dtype(self.dtype(column))

    def domain(self, column: ColumnRef) -> List[str]:
        """Category labels of a categorical column.

        Enum columns report their declared categories (including unused ones),
        Categorical and String columns their sorted distinct non-null labels.
        """
        series = self.column(column)
        if not is_categorical_dtype(series.dtype):
            raise PreconditionError(
                "Column is not categorical.", operation="domain", column=column
            )
        if isinstance(series.dtype, pl.Enum):
            return series.dtype.categories.to_list()
        return series.drop_nulls().cast(pl.String).unique().sort().to_list()

    def partitions(self) -> List[Tuple[int, pl.DataFrame]]:
        """Row-contiguous partitions as `(row_offset, slice)` pairs."""
        df = self.df
        n_rows = df.height
        if n_rows == 0:
            return [(0, df)]
        size = math.ceil(n_rows / self.n_partitions)
        return [(offset, df.slice(offset, size)) for offset in range(0, n_rows, size)]

    # --- Structural mutation ---

    def add_column(self, name: str, values: pl.Series) -> int:
        """Appends a column and returns its index."""
        with self.write_lock():
            df = self._require_data()
            if name in df.columns:
                raise PreconditionError(
                    "Column already exists.", operation="add_column", column=name
                )
            if len(values) != df.height:
                raise PreconditionError(
                    f"Column length {len(values)} does not match frame height {df.height}.",
                    operation="add_column", column=name
                )
            self._df = df.with_columns(values.alias(name))
            return self._df.width - 1

    def replace_column(self, column: ColumnRef, values: pl.Series) -> None:
        """Replaces a column's values (and possibly dtype) keeping its position."""
        with self.write_lock():
            df = self._require_data()
            index = self.resolve(column, operation="replace_column")
            if len(values) != df.height:
                raise PreconditionError(
                    f"Column length {len(values)} does not match frame height {df.height}.",
                    operation="replace_column", column=column
                )
            self._df = df.with_columns(values.alias(df.columns[index]))

    def update_domain(self, column: ColumnRef, domain: List[str]) -> None:
        """Widens the declared categories of an Enum column.

        Existing categories keep their order and must all appear in `domain`;
        values are unchanged.
        """
        with self.write_lock():
            df = self._require_data()
            index = self.resolve(column, operation="update_domain")
            series = df.to_series(index)
            if not isinstance(series.dtype, pl.Enum):
                raise PreconditionError(
                    f"Only Enum columns declare a domain, got {series.dtype}.",
                    operation="update_domain", column=column
                )
            current = series.dtype.categories.to_list()
            if domain[:len(current)] != current or len(set(domain)) != len(domain):
                raise PreconditionError(
                    "New domain must extend the current categories without duplicates.",
                    operation="update_domain", column=column
                )
            self._df = df.with_columns(series.cast(pl.Enum(domain)))

    # --- Derivation ---

    def with_data(self, df: pl.DataFrame) -> "Frame":
        """A new Frame with the same partitioning settings holding `df`."""
        return Frame(df, n_partitions=self.n_partitions, n_jobs=self.n_jobs)

    def deep_copy(self) -> "Frame":
        """An independent working copy that can be mutated freely."""
        return self.with_data(self.df.clone())
