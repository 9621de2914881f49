from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class CalendarEntryType(str, Enum):
    NATIONAL_HOLIDAY = "NATIONAL_HOLIDAY"
    COMPANY_CLOSURE = "COMPANY_CLOSURE"
    LOCAL_HOLIDAY = "LOCAL_HOLIDAY"


@dataclass(frozen=True)
class CalendarEntry:
    entry_date: date
    entry_type: CalendarEntryType
    name: str = ""
    location: Optional[str] = None   # only meaningful for LOCAL_HOLIDAY

    @property
    def is_company_wide(self) -> bool:
        return self.entry_type != CalendarEntryType.LOCAL_HOLIDAY

    def applies_to(self, location: Optional[str]) -> bool:
        if self.is_company_wide:
            return True
        return location is not None and self.location == location
