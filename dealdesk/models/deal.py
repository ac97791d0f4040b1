from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional


class DealCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    message: Optional[str] = Field(None, max_length=1000)


class DealResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    decision: Literal["accepted", "rejected"]
