"""
Auto-Fill Schemas

Editing state of per-contract hours while calendar auto-fill is toggled.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from engines.schemas.contracts import ContractGroup
from engines.schemas.hours import DayHoursSummary
from engines.schemas.salary import ContractInput


class AutoFillState(BaseModel):
    """
    Hour inputs for every contract entry plus the auto-fill bookkeeping.

    - `enabled`: company keys with auto-fill switched on
    - `auto_filled`: contract keys written by auto-fill, per company key
    - `manual_overrides`: contract keys the operator typed hours into
    - `hours`: current hour input per contract key (absent means blank)
    """

    enabled: set[str] = Field(default_factory=set)
    auto_filled: dict[str, set[str]] = Field(default_factory=dict)
    manual_overrides: set[str] = Field(default_factory=set)
    hours: dict[str, Decimal] = Field(default_factory=dict)


AutoFillAction = Literal[
    "enable", "disable", "enable_all", "disable_all", "set_hours", "refresh"
]


class AutoFillRequest(BaseModel):
    """One auto-fill action applied to a state against a calendar."""

    action: AutoFillAction
    state: AutoFillState = Field(default_factory=AutoFillState)
    groups: list[ContractGroup] = Field(default_factory=list)
    hours_by_date: dict[str, DayHoursSummary] = Field(default_factory=dict)
    company_key: str | None = Field(default=None, description="Target of enable/disable")
    contract_key: str | None = Field(default=None, description="Target of set_hours")
    value: Decimal | None = Field(default=None, ge=0, description="Hours for set_hours; null clears")


class AutoFillResponse(BaseModel):
    state: AutoFillState
    contracts: list[ContractInput] = Field(
        default_factory=list,
        description="Contract inputs ready for a salary calculation",
    )
    applied: bool = Field(
        default=True,
        description="False when enable was refused for lack of calendar hours",
    )
