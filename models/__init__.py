from .db import db
from .user import User, UserStatus
from .audit_log import AuditLog
from .pending import PendingOtpMixin
from .otp_request import SignupRequest
from .password_change_request import PasswordChangeRequest, PasswordChangePurpose
from .email_change_request import EmailChangeRequest, EmailChangeStatus
