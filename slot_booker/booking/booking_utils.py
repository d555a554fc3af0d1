# Utility functions for booking functionality
from datetime import datetime, time, timedelta
from typing import Dict, Tuple
from werkzeug.datastructures import MultiDict
from .error_utils import BookingValidationError
from .period import AvailabilitySlot, Occurrence

REQUIRED_BOOKING_FIELDS = ('name', 'email', 'phone')
BOOKING_FIELDS_MESSAGE = 'Please fill in all required fields and select a time slot.'
AVAILABILITY_TIMES_MESSAGE = 'Please enter start and end time'

# Form defaults for the admin page
DEFAULT_DAY_OF_WEEK = 1
DEFAULT_START_TIME = '09:00'
DEFAULT_END_TIME = '17:00'


def sunday_based_weekday(moment: datetime) -> int:
    """
    datetime.weekday() counts from Monday=0. Availability rows count from Sunday=0.
    """
    return (moment.weekday() + 1) % 7


def parse_time_of_day(value: str) -> time:
    """
    Parse "HH:MM" (a trailing ":SS" is ignored). Not validated beyond int(): a malformed value raises ValueError.
    """
    hours, minutes = value.split(':')[:2]
    return time(int(hours), int(minutes))


def next_occurrence(slot: AvailabilitySlot, now: datetime) -> Occurrence:
    """
    Resolve a weekly slot to its next concrete start and end.

    The occurrence is always 1 to 7 days after now's date. A slot on today's weekday is pushed a full week out,
    even if its start time has not passed yet.

    Input: the slot and the current moment. now's tzinfo (or lack of one) carries over to the result.

    Returns: Occurrence with start and end on the same date, seconds zeroed.
    """
    days_until = (slot.day_of_week - sunday_based_weekday(now) + 7) % 7 or 7
    occurrence_date = now.date() + timedelta(days=days_until)

    start = datetime.combine(occurrence_date, parse_time_of_day(slot.start_time), tzinfo=now.tzinfo)
    end = datetime.combine(occurrence_date, parse_time_of_day(slot.end_time), tzinfo=now.tzinfo)
    return Occurrence(start, end)


def validate_availability_input(form: MultiDict) -> Tuple[int, str, str]:
    """
    Check the admin page's add form.

    Returns: (day_of_week, start_time, end_time)
    Raises: BookingValidationError if a time is missing or the day isn't 0-6.
    """
    start_time = form.get('start_time', '').strip()
    end_time = form.get('end_time', '').strip()
    if not start_time or not end_time:
        raise BookingValidationError(AVAILABILITY_TIMES_MESSAGE)

    try:
        day_of_week = int(form.get('day_of_week', DEFAULT_DAY_OF_WEEK))
    except ValueError:
        raise BookingValidationError('Day of week is not valid.')
    if day_of_week not in range(7):
        raise BookingValidationError('Day of week is not valid.')

    return day_of_week, start_time, end_time


def validate_booking_input(form: MultiDict) -> Dict[str, str]:
    """
    Check the booking page form. Runs before anything is sent to the store.

    Returns: cleaned fields: slot_id, name, email, phone and instagram (may be empty).
    Raises: BookingValidationError if no slot is selected or a required field is blank.
    """
    cleaned = {field: form.get(field, '').strip() for field in ('slot_id', 'instagram') + REQUIRED_BOOKING_FIELDS}
    if not cleaned['slot_id'] or not all(cleaned[field] for field in REQUIRED_BOOKING_FIELDS):
        raise BookingValidationError(BOOKING_FIELDS_MESSAGE)
    return cleaned
