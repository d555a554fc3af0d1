import unittest
from datetime import datetime
from zoneinfo import ZoneInfo
import httplib2
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError
from werkzeug.datastructures import MultiDict
from slot_booker.booking.booking_service import BookingService
from slot_booker.booking.error_utils import BookingValidationError, StoreError
from slot_booker.booking.period import AvailabilitySlot
from fakes import FakeCalendar, FakeStore

LA = ZoneInfo('America/Los_Angeles')


class BookingServiceTest(unittest.TestCase):
    # Monday
    NOW = datetime(2024, 1, 1, 10, 0, tzinfo=LA)

    def setUp(self):
        self.store = FakeStore([AvailabilitySlot(1, 1, '09:00', '17:00'), AvailabilitySlot(2, 3, '14:00', '15:00')])
        self.calendar = FakeCalendar()
        self.service = BookingService(self.store, self.calendar)

    def form(self, **overrides):
        data = {'slot_id': '2', 'name': 'Ada', 'email': 'ada@example.com', 'phone': '555-0100', 'instagram': '@ada'}
        data.update(overrides)
        return MultiDict(data)

    def test_submit_stores_next_occurrence(self):
        booking = self.service.submit(self.form(), self.NOW)
        self.assertEqual(self.store.bookings, [booking])
        self.assertEqual(booking.start_time, datetime(2024, 1, 3, 14, 0, tzinfo=LA))
        self.assertEqual(booking.end_time, datetime(2024, 1, 3, 15, 0, tzinfo=LA))
        self.assertEqual(booking.instagram, '@ada')

    def test_empty_name_is_rejected_before_any_store_call(self):
        with self.assertRaises(BookingValidationError):
            self.service.submit(self.form(name=''), self.NOW, access_token='token')
        self.assertEqual(self.store.calls, [])
        self.assertEqual(self.calendar.tokens, [])

    def test_no_slot_selected_is_rejected_before_any_store_call(self):
        with self.assertRaises(BookingValidationError):
            self.service.submit(self.form(slot_id=''), self.NOW)
        self.assertEqual(self.store.calls, [])

    def test_deleted_slot_is_rejected(self):
        with self.assertRaises(BookingValidationError):
            self.service.submit(self.form(slot_id='99'), self.NOW)
        self.assertNotIn('insert_booking', self.store.call_names())

    def test_store_error_carries_message_and_skips_calendar(self):
        self.store.failures['insert_booking'] = 'permission denied for table bookings'
        with self.assertRaises(StoreError) as raised:
            self.service.submit(self.form(), self.NOW, access_token='token')
        self.assertEqual(raised.exception.message, 'permission denied for table bookings')
        self.assertEqual(self.calendar.tokens, [])

    def test_calendar_event_published_with_token(self):
        self.service.submit(self.form(), self.NOW, access_token='token')
        self.assertEqual(self.calendar.tokens, ['token'])
        self.assertEqual(self.calendar.events, [{
            'summary': 'New Booking',
            'description': 'Booked by Ada (ada@example.com)',
            'start': datetime(2024, 1, 3, 14, 0, tzinfo=LA),
            'end': datetime(2024, 1, 3, 15, 0, tzinfo=LA),
            'timeZone': 'America/Los_Angeles',
        }])

    def test_no_calendar_event_without_token(self):
        self.service.submit(self.form(), self.NOW)
        self.assertEqual(self.calendar.tokens, [])
        self.assertEqual(len(self.store.bookings), 1)

    def test_calendar_http_error_is_swallowed(self):
        response = httplib2.Response({'status': '403'})
        self.calendar.error = HttpError(response, b'{"error": {"message": "Insufficient Permission"}}')
        booking = self.service.submit(self.form(), self.NOW, access_token='token')
        self.assertEqual(self.store.bookings, [booking])

    def test_calendar_auth_error_is_swallowed(self):
        self.calendar.error = RefreshError('token expired')
        with self.assertLogs('slot_booker.booking.booking_service', level='ERROR'):
            self.service.submit(self.form(), self.NOW, access_token='token')
        self.assertEqual(len(self.store.bookings), 1)

    def test_same_window_can_be_booked_twice(self):
        first = self.service.submit(self.form(), self.NOW)
        second = self.service.submit(self.form(name='Grace', email='grace@example.com'), self.NOW)
        self.assertEqual((first.start_time, first.end_time), (second.start_time, second.end_time))
        self.assertEqual(len(self.store.bookings), 2)

    def test_available_slots_ordered_by_day(self):
        self.store.slots.reverse()
        self.assertEqual([slot.day_of_week for slot in self.service.available_slots()], [1, 3])


if __name__ == '__main__':
    unittest.main()
