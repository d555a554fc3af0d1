from datetime import datetime
from functools import partial, wraps
import logging
import os
import secrets
from zoneinfo import ZoneInfo
from flask import Flask, render_template, request, flash, redirect, g, session, url_for
from flask_debugtoolbar import DebugToolbarExtension
from flask_httpauth import HTTPBasicAuth
from werkzeug.security import generate_password_hash, check_password_hash
from slot_booker.booking import database, booking_service
from slot_booker.booking import booking_utils as util
from slot_booker.booking.calendar import CALENDAR_TIMEZONE, GoogleCalendarPublisher
from slot_booker.booking.error_utils import BookingValidationError, StoreError
from slot_booker.booking.period import DAYS_OF_WEEK

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Session key holding the visitor's calendar bearer token, set by whatever signed them in
CALENDAR_TOKEN_SESSION_KEY = 'calendar_access_token'


def create_app():
    app = Flask(__name__)
    app.secret_key = os.environ.get('SECRET_KEY') or secrets.token_hex(32) #256 bit
    app.config['SECRET_KEY'] = app.secret_key
    if os.environ.get('FLASK_ENV') != 'production':
        app.config["DEBUG_TB_INTERCEPT_REDIRECTS"] = False  # Prevents redirect issues

    # Zone for "now" only; calendar events always use CALENDAR_TIMEZONE
    app.config['BOOKING_TIMEZONE'] = os.environ.get('BOOKING_TIMEZONE', CALENDAR_TIMEZONE)
    app.config['GOOGLE_CALENDAR_ID'] = os.environ.get('GOOGLE_CALENDAR_ID', 'primary')
    # Collaborators are swapped out by tests
    app.config['STORE_FACTORY'] = database.DatabasePersistence
    app.config['CALENDAR_FACTORY'] = partial(GoogleCalendarPublisher, calendar_id=app.config['GOOGLE_CALENDAR_ID'])
    app.config['CLOCK'] = lambda: datetime.now(ZoneInfo(app.config['BOOKING_TIMEZONE']))
    return app

app = create_app()
auth = HTTPBasicAuth()


# Must set this in prod
prod_hash = os.getenv('HASH_ADMIN')

if prod_hash:
    users = {
        "admin": generate_password_hash(prod_hash)
    }
else: # For dev
    users = {
        "admin": generate_password_hash('secret')
    }

@auth.verify_password
def verify_password(username, password):
    if username in users and check_password_hash(users.get(username), password):
        return username

# Create g.db once per request for the routes that touch the store
def instantiate_database(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.db = app.config['STORE_FACTORY']()
        except StoreError as e:
            logger.error(f"Store could not be opened: {e.message}")
            g.db = database.UnavailableStore(e)
        return f(*args, **kwargs)
    return decorated_function

def get_booking_service():
    return booking_service.BookingService(g.db, app.config['CALENDAR_FACTORY'])

@app.route('/')
def home():
    return redirect(url_for('get_booking'))

# Admin page for managing the weekly availability visitors book against.
@app.route("/admin/availability", methods=['GET'])
@auth.login_required
@instantiate_database
def get_availability():
    try:
        availability = g.db.list_availability()
    except StoreError as e:
        logger.error(f"Error fetching availability: {e.message}")
        availability = []
    return render_template('availability.html',
                           availability=availability,
                           days_of_week=DAYS_OF_WEEK,
                           default_day=util.DEFAULT_DAY_OF_WEEK,
                           default_start=util.DEFAULT_START_TIME,
                           default_end=util.DEFAULT_END_TIME)

@app.route("/admin/availability", methods=['POST'])
@auth.login_required
@instantiate_database
def add_availability():
    try:
        day_of_week, start_time, end_time = util.validate_availability_input(request.form)
    except BookingValidationError as e:
        flash(e.message, "error")
        return redirect(url_for('get_availability'))

    try:
        g.db.insert_availability(day_of_week, start_time, end_time)
    except StoreError as e:
        flash(f"Error adding availability: {e.message}", "error")
        return redirect(url_for('get_availability'))

    logger.info(f"Availability added: {DAYS_OF_WEEK[day_of_week]} {start_time}-{end_time}")
    return redirect(url_for('get_availability'))

@app.route("/admin/availability/<slot_id>/delete", methods=['POST'])
@auth.login_required
@instantiate_database
def delete_availability(slot_id):
    try:
        g.db.delete_availability(slot_id)
    except StoreError as e:
        flash(f"Error deleting availability: {e.message}", "error")
    return redirect(url_for('get_availability'))

# Public booking page
@app.route("/book", methods=['GET'])
@instantiate_database
def get_booking():
    try:
        availability = get_booking_service().available_slots()
    except StoreError as e:
        flash(f"Failed to load availability: {e.message}", "error")
        availability = []
    return render_template('booking.html', availability=availability, form={})

@app.route("/book", methods=['POST'])
@instantiate_database
def submit_booking():
    # Token is handed to the service explicitly; the service never reads the session itself
    access_token = session.get(CALENDAR_TOKEN_SESSION_KEY)
    try:
        get_booking_service().submit(request.form, app.config['CLOCK'](), access_token)
    except BookingValidationError as e:
        flash(e.message, "error")
        return render_template('booking.html', availability=_safe_availability(), form=request.form), 422
    except (StoreError, ValueError) as e:
        message = e.message if isinstance(e, StoreError) else str(e)
        flash(f"Booking failed: {message}", "error")
        return render_template('booking.html', availability=_safe_availability(), form=request.form), 422

    flash("Booking confirmed! 🎉", "success")
    return redirect(url_for('get_booking'))

def _safe_availability():
    try:
        return g.db.list_availability()
    except StoreError as e:
        logger.error(f"Error fetching availability: {e.message}")
        return []

if __name__ == '__main__':
    # production
    if os.environ.get('FLASK_ENV') == 'production':
       app.run(debug=False)
    else:
       app.debug = True
       toolbar = DebugToolbarExtension(app)
       app.run(debug=True, port=5003)
