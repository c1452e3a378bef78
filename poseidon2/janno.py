# File: poseidon2/janno.py
# Location: poseidon2/poseidon2/janno.py

"""
Janno (sample metadata) table merging.

Janno tables of different modules do not always carry the same columns.
Tables are aligned by column name, the merged table has the union of all
columns, and cells a source table does not provide are filled with a
"not available" sentinel. Finally the rows are put into the canonical sample
order so row ``i`` of the merged janno describes individual ``i`` of the
merged ``.fam``.
"""

import logging
from pathlib import Path
from typing import Dict, Hashable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .pipeline_core.error_handling import (
    DuplicateSampleError,
    FileFormatError,
    SchemaMismatchError,
    UnresolvedSampleError,
)
from .sample_order import SampleId

logger = logging.getLogger(__name__)

MISSING_VALUE = "n/a"


def read_janno(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a tab-separated janno table with every column as string.

    Only empty cells become missing values; ``NA``, ``null`` and the like
    are kept as written, the same as in ``.fam`` files.

    Args:
        file_path: Path to the janno file

    Returns:
        The table, one row per individual

    Raises:
        FileFormatError: If the file is empty or a row has more fields than
            the header
    """
    try:
        df = pd.read_csv(file_path, sep="\t", dtype=str, keep_default_na=False, na_values=[""])
    except pd.errors.EmptyDataError:
        raise FileFormatError(str(file_path), "tab-separated table with a header line")
    except pd.errors.ParserError as e:
        raise FileFormatError(
            str(file_path), f"tab-separated table with as many fields as the header ({e})"
        ) from e
    logger.debug(f"Read {len(df)} rows and {len(df.columns)} columns from {file_path}")
    return df


def union_columns(tables: Sequence[pd.DataFrame]) -> List[str]:
    """Return all column names in order of first appearance."""
    columns: List[str] = []
    seen = set()
    for df in tables:
        for column in df.columns:
            if column not in seen:
                seen.add(column)
                columns.append(column)
    return columns


def check_identical_columns(tables: Sequence[Tuple[str, pd.DataFrame]]) -> None:
    """Raise SchemaMismatchError unless all tables have the same column set."""
    if not tables:
        return
    _, first = tables[0]
    reference = set(first.columns)
    for source, df in tables[1:]:
        columns = set(df.columns)
        if columns != reference:
            raise SchemaMismatchError(
                source, sorted(reference - columns), sorted(columns - reference)
            )


def merge_janno_tables(
    tables: Sequence[Tuple[str, pd.DataFrame]],
    schema_policy: str = "union",
    missing_value: str = MISSING_VALUE,
) -> pd.DataFrame:
    """
    Concatenate janno tables, aligning columns by name.

    Args:
        tables: ``(source path, table)`` pairs in module order
        schema_policy: ``union`` to accept differing column sets, ``strict``
            to require identical ones
        missing_value: Fill value for cells absent in a source table

    Returns:
        Concatenated table with the union of all columns

    Raises:
        SchemaMismatchError: Under the strict policy, if column sets differ
    """
    if schema_policy == "strict":
        check_identical_columns(tables)

    frames = [df for _, df in tables]
    if not frames:
        return pd.DataFrame()

    columns = union_columns(frames)
    aligned = [df.reindex(columns=columns) for df in frames]
    merged = pd.concat(aligned, ignore_index=True)
    merged = merged.astype(object).where(merged.notna(), missing_value)

    logger.info(f"Merged {len(frames)} janno tables: {len(merged)} rows, {len(columns)} columns")
    return merged


def _row_keys(
    merged: pd.DataFrame, id_column: str, family_column: Optional[str]
) -> List[Hashable]:
    for column in (id_column, family_column):
        if column and column not in merged.columns:
            raise FileFormatError("merged janno table", f"a '{column}' column")
    if family_column:
        return [SampleId(f, i) for f, i in zip(merged[family_column], merged[id_column])]
    return list(merged[id_column])


def _order_positions(order: Sequence[SampleId], by_family: bool) -> Dict[Hashable, int]:
    positions: Dict[Hashable, int] = {}
    for i, sample in enumerate(order):
        key = sample if by_family else sample.individual_id
        if key in positions:
            # Individual IDs repeat across families; rows can only be matched by (FID, IID)
            raise DuplicateSampleError(
                str(key), ["canonical sample order (set metadata_family_column)"]
            )
        positions[key] = i
    return positions


def reorder_to_sample_order(
    merged: pd.DataFrame,
    order: Sequence[SampleId],
    id_column: str,
    family_column: Optional[str] = None,
    missing_value: str = MISSING_VALUE,
    sources: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Put the rows of a merged janno table into the canonical sample order.

    Rows are matched on ``id_column`` alone (against the individual ID) or,
    when ``family_column`` is given, on ``(family_column, id_column)``.
    Samples in ``order`` without a metadata row get a row holding only their
    identifier, every other cell set to ``missing_value``.

    Args:
        merged: Output of :func:`merge_janno_tables`
        order: Canonical sample order
        id_column: Janno column holding the individual ID
        family_column: Janno column holding the family ID, if rows must be
            matched on both
        missing_value: Fill value for placeholder rows
        sources: Source file of each row of ``merged``, used in error messages

    Returns:
        Table with exactly one row per sample in ``order``, in that order

    Raises:
        UnresolvedSampleError: If a row matches no sample in ``order``
        DuplicateSampleError: If two rows describe the same sample
    """
    columns = list(merged.columns) or [id_column]
    if id_column not in columns:
        columns.insert(0, id_column)
    if family_column and family_column not in columns:
        columns.insert(0, family_column)

    positions = _order_positions(order, by_family=bool(family_column))
    row_positions: List[int] = []
    if len(merged):
        keys = _row_keys(merged, id_column, family_column)
        placed: Dict[int, str] = {}
        for row, key in enumerate(keys):
            source = sources[row] if sources else None
            if key == missing_value or (isinstance(key, SampleId) and missing_value in key):
                raise FileFormatError(source or "merged janno table", f"a value in '{id_column}'")
            if key not in positions:
                raise UnresolvedSampleError(str(key), source)
            position = positions[key]
            if position in placed:
                raise DuplicateSampleError(str(key), [placed[position], source or "janno"])
            placed[position] = source or "janno"
            row_positions.append(position)

    result = merged.reindex(columns=columns).copy()
    result.index = pd.Index(row_positions, dtype="int64")
    result = result.reindex(range(len(order))).astype(object)

    unmatched = [i for i, value in zip(result.index, result[id_column].isna()) if value]
    if unmatched:
        logger.warning(f"{len(unmatched)} samples have no janno row; filling with placeholders")
        for i in unmatched:
            result.at[i, id_column] = order[i].individual_id
            if family_column:
                result.at[i, family_column] = order[i].family_id

    result = result.where(result.notna(), missing_value)
    return result.reset_index(drop=True)


def write_janno(df: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write a janno table as tab-separated text without an index column."""
    path = Path(path)
    df.to_csv(path, sep="\t", index=False)
    logger.info(f"Wrote merged janno with {len(df)} rows to {path}")
    return path
