"""
Record model - one catalog entity (e.g. an actuator).

Attribute values, raw and derived, are stored as JSON for flexibility.
"""

import json
from typing import Any

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from pycatalog.db.base import CatalogTable


class CatalogRecord(CatalogTable):
    """
    Catalog record row.

    Attribute values are stored as JSON text so formulas can add derived
    attributes without schema migrations.
    Format: {"attribute_name": value, ...}
    """

    __tablename__ = "records"

    data: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
    )

    def load_data(self) -> dict[str, Any]:
        """
        Parse attribute JSON strictly.

        Raises:
            ValueError: If the stored text is not a JSON object
        """
        data = json.loads(self.data or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    def get_data(self) -> dict[str, Any]:
        """Parse attribute JSON; unreadable text reads as no attributes."""
        try:
            return self.load_data()
        except ValueError:
            return {}

    def set_data(self, data: dict[str, Any]) -> None:
        """Set attributes from dict."""
        self.data = json.dumps(data)

    def __repr__(self) -> str:
        return f"<CatalogRecord {self.id}>"
