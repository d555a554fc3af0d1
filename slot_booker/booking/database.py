import psycopg2
from psycopg2.extras import DictCursor
from contextlib import contextmanager
import logging
import os
from typing import List, Optional
from .error_utils import StoreError
from .period import AvailabilitySlot, BookingRequest

logger = logging.getLogger(__name__)


class DatabasePersistence:
    """
    Table store backing both pages: the `availability` slots the admin manages and the `bookings` visitors submit.

    Every driver failure is re-raised as StoreError carrying the driver's message so the pages can show it verbatim.
    Nothing is retried.
    """

    def __init__(self):
        # Schema is checked on first use so construction never touches the network
        self._schema_ready = False

    @contextmanager
    def _database_connect(self):
        """
        Internal function to manage the Postgres database connections.
        Must include environment variable for database url path when deploying to production.
        """
        try:
            if os.environ.get('FLASK_ENV') == 'production':
                connection = psycopg2.connect(os.environ['DATABASE_URL'])
            else:
                connection = psycopg2.connect(dbname='slot_booker')
        except psycopg2.OperationalError as e:
            logger.error("Database connection failed: %s", e)
            raise StoreError(str(e).strip()) from e
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    @contextmanager
    def _cursor(self, **kwargs):
        with self._database_connect() as conn:
            with conn.cursor(**kwargs) as cursor:
                try:
                    if not self._schema_ready:
                        self._setup_schema(cursor)
                        self._schema_ready = True
                    yield cursor
                except psycopg2.DatabaseError as e:
                    logger.error("Query failed with error: %s", e.args)
                    raise StoreError(str(e).strip()) from e

    def list_availability(self) -> List[AvailabilitySlot]:
        """
        All availability slots, ordered by day_of_week ascending.
        """
        query = "SELECT id, day_of_week, start_time, end_time FROM availability ORDER BY day_of_week ASC"
        logger.info("Executing query: %s", query)
        with self._cursor(cursor_factory=DictCursor) as cursor:
            cursor.execute(query)
            rows = cursor.fetchall()
        return [AvailabilitySlot.from_row(row) for row in rows]

    def get_availability(self, slot_id) -> Optional[AvailabilitySlot]:
        query = "SELECT id, day_of_week, start_time, end_time FROM availability WHERE id = %s"
        logger.info("Executing query: %s", query)
        with self._cursor(cursor_factory=DictCursor) as cursor:
            cursor.execute(query, (slot_id,))
            row = cursor.fetchone()
        return AvailabilitySlot.from_row(row) if row else None

    def insert_availability(self, day_of_week: int, start_time: str, end_time: str):
        # start_time < end_time is left to the admin
        query = "INSERT INTO availability (day_of_week, start_time, end_time) VALUES (%s, %s, %s)"
        logger.info("Executing query: %s", query)
        with self._cursor() as cursor:
            cursor.execute(query, (day_of_week, start_time, end_time))

    def delete_availability(self, slot_id):
        query = "DELETE FROM availability WHERE id = %s"
        logger.info("Executing query: %s", query)
        with self._cursor() as cursor:
            cursor.execute(query, (slot_id,))

    def insert_booking(self, booking: BookingRequest):
        """
        Stores a booking. The slot it was derived from is not locked or marked, so the same window can be booked twice.
        """
        record = booking.to_record()
        query = """INSERT INTO bookings (name, email, phone, instagram, start_time, end_time)
                   VALUES (%(name)s, %(email)s, %(phone)s, %(instagram)s, %(start_time)s, %(end_time)s)"""
        logger.info("Executing query: %s", query)
        with self._cursor() as cursor:
            cursor.execute("SET TIME ZONE 'UTC'")
            cursor.execute(query, record)

    def _setup_schema(self, cursor):
        """
        Internal function to set-up the database schema if the tables do not exist. Primarily used when being deployed in production.
        """
        cursor.execute("""
            SELECT COUNT(*)
            FROM information_schema.tables
            WHERE table_schema = 'public' AND table_name = 'availability';
        """)
        if cursor.fetchone()[0] == 0:
            logger.info("Setting up the availability table.")
            cursor.execute("""
                CREATE TABLE availability (
                id serial PRIMARY KEY,
                day_of_week smallint NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
                start_time time NOT NULL,
                end_time time NOT NULL);
            """)
        cursor.execute("""
            SELECT COUNT(*)
            FROM information_schema.tables
            WHERE table_schema = 'public' AND table_name = 'bookings';
        """)
        if cursor.fetchone()[0] == 0:
            logger.info("Setting up the bookings table.")
            cursor.execute("""
                CREATE TABLE bookings (
                id serial PRIMARY KEY,
                created_at timestamp with time zone DEFAULT CURRENT_TIMESTAMP NOT NULL,
                name text NOT NULL,
                email text NOT NULL,
                phone text NOT NULL,
                instagram text,
                start_time timestamp with time zone NOT NULL,
                end_time timestamp with time zone NOT NULL);
            """)


class UnavailableStore:
    """
    Handed to the pages when the store could not be opened. Every call re-raises the original StoreError,
    so each page reports it the way it reports any other store failure.
    """

    def __init__(self, error: StoreError):
        self._error = error

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise self._error
        return fail
