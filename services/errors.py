"""Closed set of failures raised by the auth flows.

Callers switch on the class (or its ``code``), never on message text. Each
error knows its default HTTP status and any extra fields that belong in the
JSON body.
"""


class FlowError(Exception):
    code = "INTERNAL_ERROR"
    status = 500
    message = "Something went wrong"

    def __init__(self, message=None, status=None, **extra):
        super().__init__(message or self.message)
        self.message = message or self.message
        if status is not None:
            self.status = status
        self.extra = extra

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message, **self.extra}


# validation
class InvalidInput(FlowError):
    code = "INVALID_INPUT"
    status = 400
    message = "Invalid request"


class WeakPassword(FlowError):
    code = "WEAK_PASSWORD"
    status = 400
    message = "Password does not meet policy"


class EmailTaken(FlowError):
    code = "EMAIL_TAKEN"
    status = 400
    message = "Email already registered"


class SameEmail(FlowError):
    code = "SAME_EMAIL"
    status = 400
    message = "New email must be different from your current email"


# pending-request state
class NoPendingRequest(FlowError):
    code = "NO_PENDING_REQUEST"
    status = 400
    message = "No pending request found. Please start again."


class Expired(FlowError):
    code = "OTP_EXPIRED"
    status = 400
    message = "Code expired. Please request a new code."


class AttemptsExhausted(FlowError):
    code = "OTP_LOCKED"
    status = 400
    message = "Too many attempts. Please request a new code."


class InvalidOtp(FlowError):
    code = "INVALID_OTP"
    status = 400
    message = "Invalid code"

    def __init__(self, attempts_left: int, message=None, status=None):
        super().__init__(message, status, attempts_left=attempts_left)
        self.attempts_left = attempts_left


class WrongStage(FlowError):
    code = "WRONG_STAGE"
    status = 400
    message = "Please verify your current email first"


class WrongStageOrExpiredOrLocked(FlowError):
    code = "INVALID_OR_EXPIRED_REQUEST"
    status = 400
    message = "Invalid or expired request"


# credentials / subjects
class InvalidCredentials(FlowError):
    code = "INVALID_CREDENTIALS"
    status = 400
    message = "Wrong email or password"


class AccountInactive(FlowError):
    code = "ACCOUNT_INACTIVE"
    status = 403
    message = "Your account has been deactivated. Please contact an administrator."


class SubjectNotFound(FlowError):
    code = "USER_NOT_FOUND"
    status = 400
    message = "User not found"


# collaborators
class EmailDeliveryFailed(FlowError):
    code = "EMAIL_DELIVERY_FAILED"
    status = 500
    message = "Failed to send verification email"
