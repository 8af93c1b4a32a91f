"""
Chemical model - one row of the chemical reference table
"""

from datetime import datetime
from sqlalchemy import String, Float, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from thermodash.core.database import Base


class Chemical(Base):
    """Chemical entry shown in the database tab."""

    __tablename__ = "chemicals"

    # backendId on the wire
    id: Mapped[int] = mapped_column(primary_key=True)
    # Client-facing record id (id on the wire)
    record_id: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    chem_name: Mapped[str] = mapped_column(String(100))
    formula: Mapped[str] = mapped_column(String(50))
    boiling_point: Mapped[float] = mapped_column(Float)  # Celsius
    freezing_point: Mapped[float] = mapped_column(Float)  # Celsius
    hazard_level: Mapped[str] = mapped_column(String(10))  # Low / Medium / High
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Chemical {self.chem_name} ({self.formula})>"

    def to_dict(self) -> dict:
        """Wire shape used by the dashboard table."""
        return {
            "id": self.record_id,
            "chemName": self.chem_name,
            "formula": self.formula,
            "boilingPoint": self.boiling_point,
            "freezingPoint": self.freezing_point,
            "hazardLevel": self.hazard_level,
            "notes": self.notes or "",
            "backendId": self.id,
        }
