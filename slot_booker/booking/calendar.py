from datetime import datetime
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
import logging

logger = logging.getLogger(__name__)

# Bookings are always published in this zone
CALENDAR_TIMEZONE = "America/Los_Angeles"


class GoogleCalendarPublisher:
    """
    Creates events on the visitor's own Google Calendar using the bearer token from their session.

    Construction does no network I/O; the API client is built on the first create_event call.
    May raise googleapiclient.errors.HttpError or google.auth.exceptions.GoogleAuthError from create_event.
    """

    def __init__(self, access_token: str, calendar_id: str = "primary"):
        self._access_token = access_token
        self._calendar_id = calendar_id
        self._service = None

    @property
    def service(self):
        if self._service is None:
            credentials = Credentials(token=self._access_token)
            self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return self._service

    @staticmethod
    def event_body(summary: str, description: str, start: datetime, end: datetime, timezone: str) -> dict:
        return {"summary": summary,
                "description": description,
                "start": {"dateTime": start.isoformat(), "timeZone": timezone},
                "end": {"dateTime": end.isoformat(), "timeZone": timezone},
                }

    def create_event(self, summary: str, description: str, start: datetime, end: datetime,
                     timezone: str = CALENDAR_TIMEZONE) -> dict:
        body = self.event_body(summary, description, start, end, timezone)
        event = self.service.events().insert(calendarId=self._calendar_id, body=body).execute()
        logger.info("Calendar event created: %s", event.get("id"))
        return event
