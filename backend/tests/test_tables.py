"""Tests for tables — merge and reshape of record sets."""

import pandas as pd
import pytest

from netlab.engine import tables


LEFT = [
    {"id": "s01", "media": "Daily Ledger", "audience": 20},
    {"id": "s02", "media": "Morning Post", "audience": 25},
    {"id": "s03", "media": "City Herald", "audience": 30},
]
RIGHT = [
    {"id": "s01", "owner": "Ledger Group"},
    {"id": "s03", "owner": "Herald Media"},
    {"id": "s09", "owner": "Coastal Press"},
]
SCORES = [
    {"id": "s01", "y2021": 10, "y2022": 12},
    {"id": "s02", "y2021": 7, "y2022": None},
]


class TestToRecords:
    def test_nan_becomes_none(self):
        df = pd.DataFrame({"a": [1.0, float("nan")], "b": ["x", None]})
        assert tables.to_records(df) == [{"a": 1.0, "b": "x"}, {"a": None, "b": None}]

    def test_to_table_columns(self):
        table = tables.to_table(pd.DataFrame(LEFT))
        assert table["columns"] == ["id", "media", "audience"]
        assert len(table["records"]) == 3


class TestMerge:
    def test_inner(self):
        merged = tables.merge_records(LEFT, RIGHT, on="id")
        assert list(merged["id"]) == ["s01", "s03"]
        assert list(merged["owner"]) == ["Ledger Group", "Herald Media"]

    def test_left_keeps_unmatched_rows(self):
        records = tables.to_records(tables.merge_records(LEFT, RIGHT, on="id", how="left"))
        assert len(records) == 3
        assert records[1]["owner"] is None

    def test_outer(self):
        merged = tables.merge_records(LEFT, RIGHT, on="id", how="outer")
        assert set(merged["id"]) == {"s01", "s02", "s03", "s09"}

    def test_overlapping_columns_get_suffixes(self):
        right = [{"id": "s01", "audience": 99}]
        merged = tables.merge_records(LEFT, right, on="id")
        assert {"audience_x", "audience_y"} <= set(merged.columns)

    def test_empty_left(self):
        merged = tables.merge_records([], RIGHT, on="id", how="left")
        assert len(merged) == 0
        assert {"id", "owner"} <= set(merged.columns)

    def test_empty_left_right_join_keeps_right_rows(self):
        merged = tables.merge_records([], RIGHT, on="id", how="right")
        assert list(merged["id"]) == ["s01", "s03", "s09"]

    def test_empty_right_inner(self):
        merged = tables.merge_records(LEFT, [], on="id")
        assert len(merged) == 0
        assert "media" in merged.columns

    def test_missing_key_raises(self):
        with pytest.raises(ValueError, match="not found in right table"):
            tables.merge_records(LEFT, [{"key": "s01"}], on="id")

    def test_bad_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown merge kind"):
            tables.merge_records(LEFT, RIGHT, on="id", how="cross-ish")


class TestReshape:
    def test_long(self):
        long = tables.reshape_long(SCORES, id_columns=["id"], var_name="year", value_name="score")
        assert list(long.columns) == ["id", "year", "score"]
        assert len(long) == 4
        row = long[(long["id"] == "s01") & (long["year"] == "y2022")]
        assert row["score"].iloc[0] == 12

    def test_long_selected_columns(self):
        long = tables.reshape_long(SCORES, id_columns=["id"], value_columns=["y2021"])
        assert set(long["variable"]) == {"y2021"}

    def test_long_empty_records(self):
        long = tables.reshape_long([], id_columns=["id"], value_columns=["y2021"])
        assert len(long) == 0
        assert list(long.columns) == ["id", "variable", "value"]

    def test_wide_round_trip(self):
        long = tables.to_records(tables.reshape_long(SCORES, id_columns=["id"], var_name="year", value_name="score"))
        wide = tables.reshape_wide(long, index=["id"], columns="year", values="score")
        assert list(wide.columns) == ["id", "y2021", "y2022"]
        records = tables.to_records(wide)
        assert records[0]["y2021"] == 10
        assert records[1]["y2022"] is None

    def test_wide_duplicates_raise(self):
        rows = [
            {"id": "s01", "year": "y2021", "score": 1},
            {"id": "s01", "year": "y2021", "score": 2},
        ]
        with pytest.raises(ValueError):
            tables.reshape_wide(rows, index=["id"], columns="year", values="score")

    def test_missing_id_column(self):
        with pytest.raises(ValueError, match="not found"):
            tables.reshape_long(SCORES, id_columns=["media"])


class TestRecordsByKey:
    def test_index(self):
        indexed = tables.records_by_key(RIGHT, "id")
        assert indexed["s03"] == {"owner": "Herald Media"}

    def test_duplicate_keys_raise(self):
        with pytest.raises(ValueError, match="Duplicate"):
            tables.records_by_key([{"id": "a"}, {"id": "a"}], "id")
