from .auth_routes import router as auth_routes
from .auth_routes import users_router as user_routes
from .inspection_routes import router as inspection_routes
from .report_routes import router as report_routes
from .template_routes import router as template_routes

__all__ = [
    "auth_routes",
    "user_routes",
    "template_routes",
    "inspection_routes",
    "report_routes",
]
