"""
Base Integration Classes

Common data models and the abstract workforce provider interface.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from pydantic import BaseModel, Field

from engines.schemas.contracts import WorkerContract
from engines.schemas.hours import WorkerHoursSummary

WORKER_RELATION_TYPE = 5
COMPANY_RELATION_TYPE = 1
CONTRACT_RELATION_TYPE = 1

HOURS_SCHEDULE_TYPE = 1
NOTES_SCHEDULE_TYPE = 7


class ExternalAPIError(Exception):
    """Raised when the workforce API rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ContractMeta(BaseModel):
    """Contract record from the contract catalogue (parameter type 7)."""

    id: str
    company_id: str | None = None
    company_name: str | None = None
    relation_type: int | None = None
    label: str | None = None
    description: str | None = None
    status: str | None = None
    type_label: str | None = None
    hourly_rate: Decimal | None = None
    start_date: str | None = None
    end_date: str | None = None


class WorkerCompanyStats(BaseModel):
    company_id: str | None = None
    contract_count: int = 0
    assignment_count: int = 0


class WorkerData(BaseModel):
    """Normalized worker from the workforce API."""

    id: str = Field(..., description="Worker parameter id in the external system")
    relation_id: str | None = Field(None, description="Id used by user accounts to point at the worker")
    name: str = "Trabajador sin nombre"
    email: str | None = None
    secondary_email: str | None = None
    role: str = "tecnico"
    phone: str | None = None
    avatar_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    # Employment
    base_salary: Decimal | None = None
    hourly_rate: Decimal | None = None
    contract_type: str | None = None
    department: str | None = None
    position: str | None = None
    start_date: str | None = None

    # Companies, keyed by company name
    companies: str | None = None
    company_names: list[str] = Field(default_factory=list)
    company_contracts: dict[str, list[WorkerContract]] = Field(default_factory=dict)
    company_stats: dict[str, WorkerCompanyStats] = Field(default_factory=dict)

    @property
    def contracts(self) -> list[WorkerContract]:
        return [
            contract
            for contracts in self.company_contracts.values()
            for contract in contracts
        ]


class WorkerDirectory(BaseModel):
    workers: list[WorkerData] = Field(default_factory=list)
    company_lookup: dict[str, str] = Field(
        default_factory=dict,
        description="Company id to company name",
    )

    def get(self, worker_id: str) -> WorkerData | None:
        return next((worker for worker in self.workers if worker.id == worker_id), None)


class WorkforceIntegration(ABC):
    """Abstract source of workers and attendance records."""

    provider_name: str

    @abstractmethod
    async def fetch_workers(self) -> WorkerDirectory:
        """Fetch every active worker with their company relations."""
        pass

    @abstractmethod
    async def fetch_worker_hours_summary(
        self,
        worker_id: str,
        year: int,
        month: int,
        company_lookup: dict[str, str] | None = None,
    ) -> WorkerHoursSummary:
        """
        Fetch the monthly hours calendar of a worker.

        Args:
            worker_id: Worker parameter id
            year: Calendar year
            month: Calendar month (1-12)
            company_lookup: Company id to name, to label calendar companies

        Returns:
            WorkerHoursSummary keyed by local date
        """
        pass

    async def close(self) -> None:
        pass
