"""Application error taxonomy.

Services raise these exceptions; `main.py` converts every one of them
into a JSON `{"message": ...}` response with the matching status code.
Messages are meant for API callers and must not carry internal detail.
"""


class AppError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = 400
    default_message = 'Invalid input'


class Unauthorized(AppError):
    status_code = 401
    default_message = 'Unauthorized'


class Forbidden(AppError):
    status_code = 403
    default_message = 'Forbidden'


class NotFound(AppError):
    status_code = 404
    default_message = 'Not found'


class Conflict(AppError):
    status_code = 409
    default_message = 'Conflict'
