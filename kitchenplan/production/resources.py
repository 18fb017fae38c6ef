"""
Greedy first-fit allocation of equipment units and production staff.

Both pools keep a booking list per resource and hand out the first
resource, in the order supplied, that is free over the requested window.
Windows are half-open: a unit released at 11:00 can be booked from 11:00.
"""

from collections import defaultdict
from datetime import date as Date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.production import Employee, Equipment

Window = Tuple[datetime, datetime]


def overlaps(a: Window, b: Window) -> bool:
    """True if two half-open windows intersect."""
    return a[0] < b[1] and b[0] < a[1]


class EquipmentPool:
    """Bookable equipment units grouped by type."""

    def __init__(self, equipment: Iterable[Equipment] = ()):
        self.units: List[Equipment] = list(equipment)
        self.bookings: Dict[str, List[Window]] = defaultdict(list)

    def units_of_type(self, equipment_type: str) -> List[Equipment]:
        """Units of one type in pool order."""
        return [unit for unit in self.units if unit.equipment_type == equipment_type]

    def is_free(self, equipment_id: str, start: datetime, end: datetime) -> bool:
        """True if the unit has no booking overlapping [start, end)."""
        return not any(overlaps((start, end), booked) for booked in self.bookings[equipment_id])

    def allocate(self, equipment_type: str, start: datetime, end: datetime) -> Optional[Equipment]:
        """Book the first free unit of a type, or return None."""
        for unit in self.units_of_type(equipment_type):
            if self.is_free(unit.equipment_id, start, end):
                self.bookings[unit.equipment_id].append((start, end))
                return unit
        return None


class StaffRoster:
    """Bookable production staff with shift limits."""

    def __init__(self, employees: Iterable[Employee] = ()):
        self.employees: List[Employee] = list(employees)
        self.bookings: Dict[str, List[Window]] = defaultdict(list)

    def allocate(self, production_date: Date, start: datetime, end: datetime) -> Optional[Employee]:
        """Book the first employee whose shift covers [start, end) and who is not busy."""
        for employee in self.employees:
            if not employee.covers(production_date, start, end):
                continue
            if any(overlaps((start, end), booked) for booked in self.bookings[employee.employee_id]):
                continue
            self.bookings[employee.employee_id].append((start, end))
            return employee
        return None
