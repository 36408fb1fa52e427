"""REST API routes for record-set merge and reshape."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from netlab.engine import tables
from netlab.models.tables import MergeRequest, ReshapeRequest, TableData

router = APIRouter(prefix="/api/v1/tables")


@router.post("/merge", response_model=TableData)
async def merge_tables(request: MergeRequest) -> TableData:
    """Join two record sets on a key column (inner, left, right or outer)."""
    try:
        merged = tables.merge_records(request.left, request.right, on=request.on, how=request.how)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TableData(**tables.to_table(merged))


@router.post("/reshape", response_model=TableData)
async def reshape_table(request: ReshapeRequest) -> TableData:
    """Reshape a record set to long form (one row per id and variable) or back to wide form."""
    try:
        if request.direction == "long":
            reshaped = tables.reshape_long(
                request.records,
                id_columns=request.id_columns,
                value_columns=request.value_columns,
                var_name=request.var_name,
                value_name=request.value_name,
            )
        else:
            reshaped = tables.reshape_wide(
                request.records,
                index=request.id_columns,
                columns=request.columns or request.var_name,
                values=request.values or request.value_name,
            )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TableData(**tables.to_table(reshaped))
