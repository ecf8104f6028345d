"""Tagged variants for the stored shapes a lead can arrive in."""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class FlatRow(BaseModel):
    """Tracking fields live directly on the leads row."""

    shape: Literal["flat"] = "flat"
    row: Dict[str, Any]


class NestedRow(BaseModel):
    """Checklist and extras live under the row's ``tracking_custom_fields``."""

    shape: Literal["nested"] = "nested"
    row: Dict[str, Any]
    custom_fields: Dict[str, Any] = Field(default_factory=dict)


class JoinedRow(BaseModel):
    """Core fields from the leads row, tracking state from a per-user tracking row."""

    shape: Literal["joined"] = "joined"
    row: Dict[str, Any]
    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    tracking: Optional[Dict[str, Any]] = None
    history: List[Dict[str, Any]] = Field(default_factory=list)


SourceRow = Annotated[Union[FlatRow, NestedRow, JoinedRow], Field(discriminator="shape")]
