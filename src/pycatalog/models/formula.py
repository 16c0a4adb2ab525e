"""
Formula model - a named expression computing one derived attribute.
"""

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pycatalog.db.base import CatalogTable


class Formula(CatalogTable):
    """
    Formula definition row.

    ``field_name`` is deliberately not unique: several rows may compute the
    same attribute, and in a computation pass the later row wins.
    ``position`` records creation order, which is the order formulas run in.
    """

    __tablename__ = "formulas"

    field_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    expression: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Display label only, e.g. "Nm/kg"
    units: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    __table_args__ = (Index("ix_formulas_active_position", "is_active", "position"),)

    def __repr__(self) -> str:
        return f"<Formula {self.field_name} = {self.expression!r}>"
