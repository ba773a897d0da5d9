# Applies Target Encoding to categorical features.

"""
Extended Description:
This function implements Target Encoding, a technique where categorical features
are replaced with a numerical value derived from the target variable.
It chains the encoding stages, each one finishing before the next starts:

    impute missing categories -> build statistics -> collapse folds -> prior mean
    -> merge statistics onto rows -> (leave-one-out) -> encode -> (noise)

To limit target leakage on the training data it supports three strategies:
- 'none':  every row is encoded with the statistics of its whole category.
- 'loo':   leave-one-out, each row's own target is removed from its statistics.
- 'kfold': out-of-fold, each row is encoded with statistics from the other folds
           only (folds are read from `fold_col` or generated with KFold).
Blending shrinks rarely seen categories toward the global prior mean, and noise
can be added to the training encodings as extra regularization.

The encoding for the test data is calculated using statistics from the entire
training set, without noise. The caller's DataFrames are never modified.
"""

import logging
from typing import List, Literal, Optional, Tuple

import polars as pl

from te_utils.constants import ENCODED_COLUMN_POSTFIX, NA_POSTFIX
from te_utils.data_structures.blending_params import DEFAULT_BLENDING_PARAMS, BlendingParams
from te_utils.data_structures.frame import Frame, is_categorical_dtype
from te_utils.data_structures.frame_registry import FrameRegistry
from te_utils.feature_engineering_add_noise import add_noise
from te_utils.feature_engineering_apply_encodings import apply_encodings
from te_utils.feature_engineering_build_encodings_frame import build_encodings_frame
from te_utils.feature_engineering_calculate_prior_mean import calculate_prior_mean
from te_utils.feature_engineering_group_encodings_by_category import group_encodings_by_category
from te_utils.feature_engineering_merge_encodings import merge_encodings
from te_utils.feature_engineering_subtract_target_value_for_loo import subtract_target_value_for_loo
from te_utils.other_exceptions import PreconditionError
from te_utils.other_resolve_seed import resolve_seed
from te_utils.other_timer_context_manager import timer_context_manager
from te_utils.preprocessing_add_kfold_column import add_kfold_column
from te_utils.preprocessing_filter_rows import filter_out_nas_in_column
from te_utils.preprocessing_impute_categorical_column import impute_categorical_column

logger = logging.getLogger(__name__)

DATA_LEAKAGE_HANDLING = ('none', 'loo', 'kfold')

def apply_target_encoding(
    train_df: pl.DataFrame,
    features: List[str],
    target_col: str,
    test_df: Optional[pl.DataFrame] = None,
    data_leakage_handling: Literal['none', 'loo', 'kfold'] = 'none',
    fold_col: Optional[str] = None,
    n_folds: int = 5,
    blending: bool = False,
    blending_params: Optional[BlendingParams] = None,
    noise_level: float = 0.0,
    seed: Optional[int] = None,
    n_partitions: int = 1,
    n_jobs: int = 1,
    new_col_suffix: str = ENCODED_COLUMN_POSTFIX
) -> Tuple[pl.DataFrame, Optional[pl.DataFrame]]:
    """Applies target encoding to the training data and, optionally, test data.

    Args:
        train_df (pl.DataFrame): Training DataFrame containing features and target.
        features (List[str]): Categorical column names to encode (String,
                              Categorical or Enum).
        target_col (str): Name of the numeric (or boolean) target column.
        test_df (Optional[pl.DataFrame], optional): Test DataFrame to encode.
                                                   Defaults to None.
        data_leakage_handling (Literal['none', 'loo', 'kfold'], optional):
            Strategy used for the training encodings. Defaults to 'none'.
        fold_col (Optional[str], optional): Existing fold column of `train_df`, only
            used with 'kfold'. If None, folds are generated. Defaults to None.
        n_folds (int, optional): Number of folds generated when `fold_col` is None.
                                 Defaults to 5.
        blending (bool, optional): Whether to blend category means with the prior
                                   mean. Defaults to False.
        blending_params (Optional[BlendingParams], optional): Shrinkage parameters
            used when blending. Defaults to DEFAULT_BLENDING_PARAMS (k=10, f=20).
        noise_level (float, optional): Half-width of the uniform noise added to
            the training encodings. 0 disables noise. Defaults to 0.0.
        seed (Optional[int], optional): Seed for fold generation and noise. None
                                        picks a random seed. Defaults to None.
        n_partitions (int, optional): Number of row partitions processed
                                      independently. Defaults to 1.
        n_jobs (int, optional): Number of parallel workers. Defaults to 1.
        new_col_suffix (str, optional): Suffix of the encoded column names.
                                        Defaults to '_te'.

    Returns:
        Tuple[pl.DataFrame, Optional[pl.DataFrame]]:
            - Training DataFrame with added target-encoded columns.
            - Test DataFrame with added target-encoded columns (or None if test_df was None).

    Raises:
        ValueError: If data_leakage_handling is invalid or fold settings are inconsistent.
        PreconditionError: If a feature is not categorical or the target is not numeric.
        pl.exceptions.ColumnNotFoundError: If feature, target or fold columns are missing.
    """
    if data_leakage_handling not in DATA_LEAKAGE_HANDLING:
        raise ValueError(f"data_leakage_handling must be one of {DATA_LEAKAGE_HANDLING}.")
    if fold_col is not None and data_leakage_handling != 'kfold':
        raise ValueError("fold_col can only be used with data_leakage_handling='kfold'.")

    # --- Validate Columns ---
    required_train_cols = set(features) | {target_col}
    if fold_col is not None:
        required_train_cols.add(fold_col)
    missing_train = required_train_cols - set(train_df.columns)
    if missing_train:
        raise pl.exceptions.ColumnNotFoundError(f"Columns missing in train_df: {missing_train}")
    if test_df is not None:
        missing_test = set(features) - set(test_df.columns)
        if missing_test:
            raise pl.exceptions.ColumnNotFoundError(f"Features missing in test_df: {missing_test}")
    for feature in features:
        if not is_categorical_dtype(train_df.schema[feature]):
            raise PreconditionError(
                f"Only categorical features can be target encoded, got {train_df.schema[feature]}.",
                operation='apply_target_encoding', column=feature
            )

    is_kfold = data_leakage_handling == 'kfold'
    if (is_kfold and fold_col is None) or noise_level > 0:
        seed = resolve_seed(seed)
    params = (blending_params or DEFAULT_BLENDING_PARAMS) if blending else None

    # --- Exclusively owned working copies ---
    train = Frame(train_df.clone(), n_partitions=n_partitions, n_jobs=n_jobs)
    test = Frame(test_df.clone(), n_partitions=n_partitions, n_jobs=n_jobs) if test_df is not None else None

    if is_kfold and fold_col is None:
        fold_col = "_fold"
        while fold_col in train.names:
            fold_col += "_"
        add_kfold_column(train, fold_col, n_folds, seed)
    max_fold = None
    if is_kfold:
        max_fold = train.column(fold_col).max()
        max_fold = 0 if max_fold is None else int(max_fold)

    train_encoded = {}
    test_encoded = {}
    registry = FrameRegistry()

    with registry.scope():
        for i, feature in enumerate(features):
            new_col_name = f"{feature}{new_col_suffix}"
            na_category = f"{feature}{NA_POSTFIX}"
            impute_categorical_column(train, feature, na_category)
            if test is not None:
                impute_categorical_column(test, feature, na_category)

            # --- Statistics (rows with a known target only) ---
            with timer_context_manager(f"build_encodings_frame[{feature}]"):
                labelled = registry.get(registry.register(filter_out_nas_in_column(train, target_col)))
                encodings = build_encodings_frame(
                    labelled, feature, target_col, fold_col if is_kfold else None
                )
                registry.register(encodings)
                full_encodings = group_encodings_by_category(encodings, feature, has_folds=is_kfold)
                registry.register(full_encodings)
                registry.dispose(labelled.key)

            prior_mean = calculate_prior_mean(full_encodings)
            logger.debug(f"Prior mean for '{feature}': {prior_mean}")

            # --- Encode Train Data ---
            with timer_context_manager(f"merge_encodings[{feature}]"):
                if is_kfold:
                    merged = merge_encodings(
                        train, encodings, feature,
                        fold_column=fold_col, encodings_fold_column=fold_col, max_fold=max_fold
                    )
                else:
                    merged = merge_encodings(train, full_encodings, feature)
                registry.register(merged)

            if data_leakage_handling == 'loo':
                subtract_target_value_for_loo(merged, target_col)

            with timer_context_manager(f"apply_encodings[{feature}]"):
                encoded_idx = apply_encodings(merged, new_col_name, prior_mean, params)
            if noise_level > 0:
                add_noise(merged, encoded_idx, noise_level, seed + i)
            train_encoded[new_col_name] = merged.column(encoded_idx)

            # --- Encode Test Data (Using Full Training Data) ---
            if test is not None:
                merged_test = merge_encodings(test, full_encodings, feature)
                registry.register(merged_test)
                test_idx = apply_encodings(merged_test, new_col_name, prior_mean, params)
                test_encoded[new_col_name] = merged_test.column(test_idx)

            logger.info(f"Target encoded '{feature}' -> '{new_col_name}' ({data_leakage_handling})")

    train.dispose()
    if test is not None:
        test.dispose()

    train_df_out = train_df.with_columns(list(train_encoded.values()))
    test_df_out = test_df.with_columns(list(test_encoded.values())) if test_df is not None else None
    return train_df_out, test_df_out
