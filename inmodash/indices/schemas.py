"""Pydantic schemas for rent index endpoints."""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class IndexValueResponse(BaseModel):
    type: Literal["icl", "ipc"]
    value: Decimal
    date: date
    raw_data: Dict[str, Any] = {}

    model_config = {"from_attributes": True}


class AllIndicesResponse(BaseModel):
    icl: IndexValueResponse
    ipc: IndexValueResponse


class CalculateUpdateRequest(BaseModel):
    """
    Escalate an amount by an index variation.

    When current_index_value is omitted, the latest published value of
    index_type is used.
    """
    base_amount: Decimal = Field(..., gt=0)
    initial_index_value: Decimal = Field(..., gt=0)
    current_index_value: Optional[Decimal] = Field(None, gt=0)
    index_type: Optional[Literal["icl", "ipc"]] = None


class CalculateUpdateResponse(BaseModel):
    new_amount: Decimal
    coefficient: Decimal
    percentage_increase: Decimal
    current_index_value: Decimal
