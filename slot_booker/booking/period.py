# Record types shared by the admin and booking pages
from datetime import datetime, time, timezone

# Sunday=0, matching the day_of_week column
DAY_ABBREVIATIONS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
DAYS_OF_WEEK = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


def _as_hh_mm(value) -> str:
    """
    The store may return a time column as a datetime.time or as "HH:MM:SS". The pages only deal in "HH:MM".
    """
    if isinstance(value, time):
        return value.strftime('%H:%M')
    value = str(value)
    if value.count(':') == 2:
        return value.rsplit(':', 1)[0]
    return value


class AvailabilitySlot:
    """
    A recurring weekly window. Owned by the store; the pages only hold a copy that is refreshed after every change.
    """

    def __init__(self, slot_id, day_of_week: int, start_time: str, end_time: str):
        self._id = slot_id
        self._day_of_week = day_of_week
        self._start_time = start_time
        self._end_time = end_time

    @classmethod
    def from_row(cls, row):
        return cls(row['id'], int(row['day_of_week']), _as_hh_mm(row['start_time']), _as_hh_mm(row['end_time']))

    @property
    def id(self):
        return self._id

    @property
    def day_of_week(self) -> int:
        return self._day_of_week

    @property
    def start_time(self) -> str:
        return self._start_time

    @property
    def end_time(self) -> str:
        return self._end_time

    @property
    def label(self) -> str:
        return f"{DAY_ABBREVIATIONS[self.day_of_week]}: {self.start_time} - {self.end_time}"

    def __eq__(self, other):
        if not isinstance(other, AvailabilitySlot):
            return NotImplemented
        return (self.id, self.day_of_week, self.start_time, self.end_time) == \
            (other.id, other.day_of_week, other.start_time, other.end_time)

    def __repr__(self):
        return f"AvailabilitySlot(id={self.id!r}, {self.label})"


class Occurrence:
    """
    Defined as a pair of datetime objects: one concrete calendar instance of a slot.
    """

    def __init__(self, start: datetime, end: datetime):
        self._start = start
        self._end = end

    @property
    def start(self) -> datetime:
        return self._start

    @property
    def end(self) -> datetime:
        return self._end

    def __iter__(self):
        return iter((self._start, self._end))

    def __eq__(self, other):
        if not isinstance(other, Occurrence):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __repr__(self):
        return f"Occurrence(start={self.start.isoformat()}, end={self.end.isoformat()})"


class BookingRequest:
    """
    One submission from the booking page. Written to the store once and never touched again.
    """

    def __init__(self, name: str, email: str, phone: str, occurrence: Occurrence, instagram: str = ''):
        self.name = name
        self.email = email
        self.phone = phone
        self.instagram = instagram
        self.occurrence = occurrence

    @property
    def start_time(self) -> datetime:
        return self.occurrence.start

    @property
    def end_time(self) -> datetime:
        return self.occurrence.end

    def to_record(self) -> dict:
        """
        Row for the bookings table. Timestamps are stored as ISO-8601 in UTC; naive datetimes are taken as local time.
        """
        return {
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'instagram': self.instagram,
            'start_time': self.start_time.astimezone(timezone.utc).isoformat(),
            'end_time': self.end_time.astimezone(timezone.utc).isoformat(),
        }
