"""SQLAlchemy ORM Models for Salary Desk."""

from backend.models.base import Base, OwnedMixin, TimestampMixin
from backend.models.report_template import ReportTemplateRecord
from backend.models.salary_calculation import SalaryCalculation

__all__ = [
    "Base",
    "TimestampMixin",
    "OwnedMixin",
    "ReportTemplateRecord",
    "SalaryCalculation",
]
