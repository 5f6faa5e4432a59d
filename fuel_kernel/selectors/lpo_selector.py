"""
Module: fuel_kernel.selectors.lpo_selector
Responsibility: Read-only queries over LPO entries: active entries for a
    truck at a station (duplicate guard, cash auto-cancel), entries linked to
    a delivery order (cascades) and LPO numbering.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.
"""

from uuid import UUID

from sqlalchemy import func, select

from fuel_kernel.domain.dtos import LPOEntryInfo
from fuel_kernel.domain.truck_number import normalize_truck_no
from fuel_kernel.domain.values import normalize_key
from fuel_kernel.models.lpo_entry import LPOEntry
from fuel_kernel.selectors.base import BaseSelector

FIRST_LPO_NUMBER = 2445


class LPOSelector(BaseSelector[LPOEntry]):
    """Selector for LPO entry queries."""

    def get(self, entry_id: UUID) -> LPOEntryInfo | None:
        entry = self.session.get(LPOEntry, entry_id)
        return LPOEntryInfo.from_model(entry) if entry is not None else None

    def active_entries(self, truck_no: str, station: str) -> list[LPOEntryInfo]:
        """Active entries for a truck at a station, oldest first."""
        stmt = (
            select(LPOEntry)
            .where(
                LPOEntry.truck_no == normalize_truck_no(truck_no),
                LPOEntry.station == normalize_key(station),
                LPOEntry.is_cancelled.is_(False),
            )
            .order_by(LPOEntry.entry_date, LPOEntry.created_at)
        )
        return [LPOEntryInfo.from_model(e) for e in self.session.scalars(stmt)]

    def entries_for_lpo(self, lpo_no: str, active_only: bool = True) -> list[LPOEntryInfo]:
        stmt = select(LPOEntry).where(LPOEntry.lpo_no == lpo_no)
        if active_only:
            stmt = stmt.where(LPOEntry.is_cancelled.is_(False))
        stmt = stmt.order_by(LPOEntry.created_at)
        return [LPOEntryInfo.from_model(e) for e in self.session.scalars(stmt)]

    def entries_for_do(self, do_number: str, active_only: bool = True) -> list[LPOEntryInfo]:
        stmt = select(LPOEntry).where(LPOEntry.do_number == do_number)
        if active_only:
            stmt = stmt.where(LPOEntry.is_cancelled.is_(False))
        stmt = stmt.order_by(LPOEntry.created_at)
        return [LPOEntryInfo.from_model(e) for e in self.session.scalars(stmt)]

    def next_lpo_no(self) -> str:
        """
        Next LPO number: one past the highest numeric LPO number in use.

        Non-numeric LPO numbers are ignored.  The first number issued is
        FIRST_LPO_NUMBER.
        """
        highest = FIRST_LPO_NUMBER - 1
        for lpo_no in self.session.scalars(select(func.distinct(LPOEntry.lpo_no))):
            if lpo_no and lpo_no.isdigit():
                highest = max(highest, int(lpo_no))
        return str(highest + 1)
