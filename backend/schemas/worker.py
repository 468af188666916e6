"""
Worker Pydantic Schemas

API response models for the worker directory.
"""

from pydantic import BaseModel, Field

from engines.schemas.contracts import ContractGroup
from integrations.base import WorkerData


class WorkerSummary(BaseModel):
    """Row of the worker picker."""

    id: str
    name: str
    email: str | None = None
    role: str
    company_names: list[str] = Field(default_factory=list)
    contract_count: int = 0

    @classmethod
    def from_worker(cls, worker: WorkerData) -> "WorkerSummary":
        return cls(
            id=worker.id,
            name=worker.name,
            email=worker.email or worker.secondary_email,
            role=worker.role,
            company_names=worker.company_names,
            contract_count=sum(
                1 for contract in worker.contracts if contract.has_contract
            ),
        )


class WorkerListResponse(BaseModel):
    items: list[WorkerSummary]
    total: int
    company_lookup: dict[str, str] = Field(default_factory=dict)


class WorkerDetailResponse(BaseModel):
    """Worker with the contract groups used for hour entry."""

    worker: WorkerData
    contract_groups: list[ContractGroup] = Field(default_factory=list)
    company_lookup: dict[str, str] = Field(default_factory=dict)


class HoursRegistryRequest(BaseModel):
    """Workers and month to export to the hours registry workbook."""

    worker_ids: list[str] = Field(..., min_length=1)
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
