# eduable/errors.py


class EduAbleError(Exception):
    """Базовая ошибка домена: несёт HTTP-статус и короткое сообщение."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(EduAbleError):
    status_code = 400
    message = "Invalid request"


class DuplicateUsername(ValidationError):
    message = "Username already exists"


class DuplicateEmail(ValidationError):
    message = "Email already exists"


class AlreadyEnrolled(ValidationError):
    message = "Already enrolled in this course"


class InvalidCredentials(EduAbleError):
    status_code = 401
    message = "Invalid username or password"


class Unauthorized(EduAbleError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(EduAbleError):
    status_code = 403
    message = "Forbidden"


class NotFound(EduAbleError):
    status_code = 404
    message = "Not found"
