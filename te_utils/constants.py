# Shared column names and limits used across the target encoding utilities.

"""
Extended Description:
Statistics tables always carry a numerator column (sum of target) directly
followed by a denominator column (count of non-null target rows). Encoded
columns are named `<column><ENCODED_COLUMN_POSTFIX>` and the synthetic
missing-category label is `<column><NA_POSTFIX>`.
"""

NUMERATOR_COL = "numerator"
DENOMINATOR_COL = "denominator"

ENCODED_COLUMN_POSTFIX = "_te"
NA_POSTFIX = "_NA"

# Distinct values must fit in a 32-bit signed index.
MAX_UNIQUE_VALUES = 2**31 - 1
