# Groups a Polars DataFrame by key columns and evaluates AggregationSpecs.

"""
Extended Description:
The group-by engine used to build and collapse encoding statistics. Each
AggregationSpec becomes a Polars expression: `sum` results are Float64 and
`count` results Int64. NaN values in float columns are treated as missing,
like nulls. Groups keep the order in which keys first appear.
"""

from typing import List

import polars as pl

from te_utils.data_structures.aggregation_spec import AggregationSpec

def _aggregation_expr(df: pl.DataFrame, spec: AggregationSpec) -> pl.Expr:
    value = pl.col(spec.column)
    if df.schema[spec.column].is_float():
        value = value.fill_nan(None)

    if spec.kind == 'sum':
        expr = value.sum().cast(pl.Float64)
        if spec.na_policy == 'all':
            expr = pl.when(value.null_count() > 0).then(None).otherwise(expr)
    else:
        expr = value.count() if spec.na_policy == 'ignore' else pl.len()
        expr = expr.cast(pl.Int64)
    return expr.alias(spec.output_name)

def group_by_with_aggregations(
    df: pl.DataFrame,
    group_by: List[str],
    aggregations: List[AggregationSpec]
) -> pl.DataFrame:
    """Groups `df` by `group_by` and computes `aggregations` for each group.

    Args:
        df (pl.DataFrame): Input rows.
        group_by (List[str]): Key columns.
        aggregations (List[AggregationSpec]): Aggregations to compute.

    Returns:
        pl.DataFrame: Key columns followed by one column per aggregation, named
                      by `AggregationSpec.output_name`. Keys are unique.

    Raises:
        ValueError: If `group_by` or `aggregations` is empty.
        pl.exceptions.ColumnNotFoundError: If a referenced column is missing.
    """
    if not group_by:
        raise ValueError("group_by must contain at least one column.")
    if not aggregations:
        raise ValueError("aggregations must contain at least one AggregationSpec.")
    missing = [c for c in list(group_by) + [a.column for a in aggregations] if c not in df.columns]
    if missing:
        raise pl.exceptions.ColumnNotFoundError(f"Columns missing for group by: {missing}")

    exprs = [_aggregation_expr(df, spec) for spec in aggregations]
    return df.group_by(group_by, maintain_order=True).agg(exprs)
