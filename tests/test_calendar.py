import unittest
from datetime import datetime
from unittest import mock
from zoneinfo import ZoneInfo
from slot_booker.booking.calendar import CALENDAR_TIMEZONE, GoogleCalendarPublisher


class GoogleCalendarPublisherTest(unittest.TestCase):
    def setUp(self):
        tz = ZoneInfo(CALENDAR_TIMEZONE)
        self.start = datetime(2024, 1, 3, 14, 0, tzinfo=tz)
        self.end = datetime(2024, 1, 3, 15, 0, tzinfo=tz)

    def test_event_body(self):
        body = GoogleCalendarPublisher.event_body('New Booking', 'Booked by Ada (ada@example.com)',
                                                  self.start, self.end, CALENDAR_TIMEZONE)
        self.assertEqual(body, {
            'summary': 'New Booking',
            'description': 'Booked by Ada (ada@example.com)',
            'start': {'dateTime': '2024-01-03T14:00:00-08:00', 'timeZone': 'America/Los_Angeles'},
            'end': {'dateTime': '2024-01-03T15:00:00-08:00', 'timeZone': 'America/Los_Angeles'},
        })

    def test_create_event_inserts_into_calendar(self):
        service = mock.MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {'id': 'evt1', 'status': 'confirmed'}
        with mock.patch('slot_booker.booking.calendar.build', return_value=service) as build:
            publisher = GoogleCalendarPublisher('ya29.token')
            event = publisher.create_event('New Booking', 'Booked by Ada (ada@example.com)', self.start, self.end)
        self.assertEqual(event['id'], 'evt1')
        credentials = build.call_args.kwargs['credentials']
        self.assertEqual(credentials.token, 'ya29.token')
        insert_kwargs = service.events.return_value.insert.call_args.kwargs
        self.assertEqual(insert_kwargs['calendarId'], 'primary')
        self.assertEqual(insert_kwargs['body']['start']['timeZone'], 'America/Los_Angeles')

    def test_no_client_built_until_used(self):
        with mock.patch('slot_booker.booking.calendar.build') as build:
            GoogleCalendarPublisher('ya29.token')
        build.assert_not_called()


if __name__ == '__main__':
    unittest.main()
