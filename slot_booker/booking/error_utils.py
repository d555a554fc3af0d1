# Custom exceptions to be used throughout the project.

class BookingValidationError(Exception):
    """
    To be raised when a submitted form fails validation, before any call to the store is made.
    May be raised under the following circumstances:
        1. No time slot was selected
        2. A required field (name, email, phone) is empty
        3. An availability start or end time is missing
    """
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class StoreError(Exception):
    """
    Raised when the availability / bookings store rejects a list, insert or delete.
    The message is the database driver's message, shown to the user as-is.
    """
    def __init__(self, message):
        super().__init__(message)
        self.message = message
