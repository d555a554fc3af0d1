from datetime import datetime
from typing import Callable, List, Optional
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import Error as GoogleApiClientError
from httplib2 import HttpLib2Error
import logging
from werkzeug.datastructures import MultiDict
from . import booking_utils as util
from .calendar import CALENDAR_TIMEZONE
from .error_utils import BookingValidationError
from .period import AvailabilitySlot, BookingRequest

logger = logging.getLogger(__name__)

EVENT_SUMMARY = "New Booking"


class BookingService:
    """
    Turns a booking form into a stored booking and, when the visitor has calendar credentials, a calendar event.

    Collaborators are passed in:
        store: anything with get_availability / list_availability / insert_booking (see database.DatabasePersistence)
        calendar_factory: callable taking a bearer token and returning an object with create_event
    """

    def __init__(self, store, calendar_factory: Optional[Callable] = None):
        self._store = store
        self._calendar_factory = calendar_factory

    def available_slots(self) -> List[AvailabilitySlot]:
        return self._store.list_availability()

    def submit(self, form: MultiDict, now: datetime, access_token: Optional[str] = None) -> BookingRequest:
        """
        Validate, resolve the slot's next occurrence, store the booking, then publish it.

        Raises:
            BookingValidationError: before any store call if the form is incomplete, or if the selected slot no longer exists
            StoreError: if the store rejects the lookup or insert
            ValueError: if the stored slot's times are malformed
        """
        fields = util.validate_booking_input(form)

        slot = self._store.get_availability(fields['slot_id'])
        if slot is None:
            raise BookingValidationError(util.BOOKING_FIELDS_MESSAGE)

        occurrence = util.next_occurrence(slot, now)
        booking = BookingRequest(fields['name'], fields['email'], fields['phone'], occurrence,
                                 instagram=fields['instagram'])
        # No check for an existing booking in the same window
        self._store.insert_booking(booking)
        logger.info("Booking stored for %s at %s", booking.email, booking.start_time.isoformat())

        if access_token:
            self.publish(booking, access_token)
        return booking

    def publish(self, booking: BookingRequest, access_token: str) -> Optional[dict]:
        """
        Best effort. Any calendar failure is logged and dropped; the booking already stands.
        """
        if self._calendar_factory is None:
            return None
        try:
            publisher = self._calendar_factory(access_token)
            return publisher.create_event(EVENT_SUMMARY,
                                          f"Booked by {booking.name} ({booking.email})",
                                          booking.start_time,
                                          booking.end_time,
                                          CALENDAR_TIMEZONE)
        # ValueError covers a malformed response body; it must not read as a failed booking
        except (GoogleApiClientError, GoogleAuthError, HttpLib2Error, OSError, ValueError) as e:
            logger.error(f"Calendar event creation failed for booking at {booking.start_time.isoformat()}: {e}")
            return None
