"""Merge and reshape of tabular record sets with pandas.

Record sets are lists of flat dicts; every function returns a DataFrame
except ``to_records``/``to_table`` which convert back, turning NaN into None.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import pandas as pd

MERGE_KINDS = ("inner", "left", "right", "outer")


def to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a frame to plain-Python records with missing values as None."""
    return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")


def to_table(df: pd.DataFrame) -> dict[str, Any]:
    return {"columns": [str(c) for c in df.columns], "records": to_records(df)}


def _frame(records: Iterable[dict[str, Any]], required: Sequence[str] = (), label: str = "table") -> pd.DataFrame:
    rows = list(records)
    # An empty record set still carries the columns the caller relies on
    df = pd.DataFrame(rows) if rows else pd.DataFrame(columns=list(required))
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Column(s) {missing} not found in {label}; available: {list(df.columns)}")
    return df


def merge_records(
    left: Iterable[dict[str, Any]],
    right: Iterable[dict[str, Any]],
    on: str,
    how: str = "inner",
) -> pd.DataFrame:
    """Join two record sets on the key column *on*.

    Overlapping non-key columns get ``_x``/``_y`` suffixes.
    """
    if how not in MERGE_KINDS:
        raise ValueError(f"Unknown merge kind '{how}'. Expected one of {list(MERGE_KINDS)}")
    left_df = _frame(left, [on], "left table")
    right_df = _frame(right, [on], "right table")
    # Empty sides have object keys; match the other side so pandas accepts the join
    if left_df.empty and not right_df.empty:
        left_df[on] = left_df[on].astype(right_df[on].dtype)
    elif right_df.empty and not left_df.empty:
        right_df[on] = right_df[on].astype(left_df[on].dtype)
    return pd.merge(left_df, right_df, on=on, how=how, sort=False)


def reshape_long(
    records: Iterable[dict[str, Any]],
    id_columns: Sequence[str],
    value_columns: Optional[Sequence[str]] = None,
    var_name: str = "variable",
    value_name: str = "value",
) -> pd.DataFrame:
    """Stack value columns into (variable, value) rows, one per id and column."""
    required = list(id_columns) + list(value_columns or [])
    df = _frame(records, required)
    return pd.melt(
        df,
        id_vars=list(id_columns),
        value_vars=list(value_columns) if value_columns else None,
        var_name=var_name,
        value_name=value_name,
    )


def reshape_wide(
    records: Iterable[dict[str, Any]],
    index: Sequence[str],
    columns: str,
    values: str,
) -> pd.DataFrame:
    """Spread a long table back into one column per distinct *columns* value.

    Raises ``ValueError`` when an (index, column) pair occurs twice.
    """
    df = _frame(records, list(index) + [columns, values])
    wide = df.pivot(index=list(index), columns=columns, values=values).reset_index()
    wide.columns = [str(c) for c in wide.columns]
    return wide


def records_by_key(records: Iterable[dict[str, Any]], key: str) -> dict[str, dict[str, Any]]:
    """Index a record set by its key column; the key itself is dropped from each row."""
    df = _frame(records, [key])
    keys = df[key].astype(str)
    duplicated = keys[keys.duplicated()].unique().tolist()
    if duplicated:
        raise ValueError(f"Duplicate values in key column '{key}': {duplicated[:5]}")
    rows = to_records(df.drop(columns=[key]))
    return dict(zip(keys.tolist(), rows))
