from .health import health_bp
from .auth import auth_bp
from .account import account_bp
