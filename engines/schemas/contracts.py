"""
Contract Schemas

A worker's relations to companies and their grouping for hour entry.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class WorkerContract(BaseModel):
    """
    One relation between a worker and a company.

    `has_contract` distinguishes formal contracts (relation type 1) from
    plain assignments, which are never paid through a contract entry.
    """

    id: str | None = None
    company_id: str | None = None
    company_name: str
    relation_type: int | None = None
    type_label: str | None = None
    label: str | None = None
    position: str | None = None
    description: str | None = None
    status: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    hourly_rate: Decimal | None = None
    has_contract: bool = False


class ContractGroupEntry(BaseModel):
    contract_key: str
    contract_id: str | None = None
    label: str
    description: str | None = None
    hourly_rate: Decimal | None = None


class ContractGroup(BaseModel):
    """Contracts of one company, as shown in one hour-entry panel."""

    company_key: str
    company_id: str | None = None
    company_name: str
    entries: list[ContractGroupEntry] = Field(default_factory=list)
