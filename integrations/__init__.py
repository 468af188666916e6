"""
Salary Desk External Integrations

Connector for the workforce API that owns workers, companies and attendance.
"""

from integrations.base import (
    ExternalAPIError,
    WorkerData,
    WorkerDirectory,
    WorkforceIntegration,
)
from integrations.workforce_api import ExternalWorkforceClient

__all__ = [
    "ExternalAPIError",
    "ExternalWorkforceClient",
    "WorkerData",
    "WorkerDirectory",
    "WorkforceIntegration",
]
