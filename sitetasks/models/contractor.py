"""Contractor registry record."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence

from sitetasks.models.task import cell_text


class ContractorColumn(Enum):
    """Columns of the Contractors tab, in sheet order."""

    NAME = ("Name", "name")
    EMAIL = ("Email", "email")
    PHONE = ("Phone", "phone")
    TRADE = ("Trade", "trade")

    def __init__(self, header: str, field_name: str):
        self.header = header
        self.field_name = field_name


CONTRACTOR_HEADERS: List[str] = [column.header for column in ContractorColumn]


@dataclass
class Contractor:
    """A subcontractor or tradesperson tasks can be assigned to."""

    name: str
    email: str = ""
    phone: str = ""
    trade: str = ""

    def to_row(self) -> List[str]:
        return [self.name, self.email, self.phone, self.trade]

    @classmethod
    def from_row(cls, row: Sequence[Any], mapping: Dict[int, ContractorColumn]) -> "Contractor":
        cells = {column: "" for column in ContractorColumn}
        for position, column in mapping.items():
            if position < len(row):
                cells[column] = cell_text(row[position]).strip()
        return cls(
            name=cells[ContractorColumn.NAME],
            email=cells[ContractorColumn.EMAIL],
            phone=cells[ContractorColumn.PHONE],
            trade=cells[ContractorColumn.TRADE],
        )

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "email": self.email, "phone": self.phone, "trade": self.trade}
