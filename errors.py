"""
Error types raised by the front desk services.

Every error carries the HTTP status the API answers with, so route handlers
can let them propagate to the blueprint's error handler.
"""


class FrontDeskError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(FrontDeskError):
    status_code = 400


class NotFoundError(FrontDeskError):
    status_code = 404


class ConflictError(FrontDeskError):
    status_code = 409


class ReservationClosedError(ConflictError):
    """Raised when charges or payments are posted to a closed reservation"""


class InvalidTransitionError(ConflictError):
    """Raised for a status change the reservation lifecycle does not allow"""


class StoreError(FrontDeskError):
    """A read or write against the database failed"""
    status_code = 500
