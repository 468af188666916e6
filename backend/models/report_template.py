"""
ReportTemplate Model

User-editable PDF template. The layout (page, header, sections, footer)
is stored as a JSON document validated by reporting.schemas.ReportTemplate.
"""

from uuid import UUID, uuid4

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base, OwnedMixin, TimestampMixin


class ReportTemplateRecord(TimestampMixin, OwnedMixin, Base):
    """Stored report template."""

    __tablename__ = "report_templates"

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name of the template",
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    definition: Mapped[dict] = mapped_column(
        nullable=False,
        default=dict,
        comment="Layout document: page_size, orientation, header, sections, footer",
    )

    def __repr__(self) -> str:
        return f"<ReportTemplateRecord(id={self.id}, name={self.name})>"
