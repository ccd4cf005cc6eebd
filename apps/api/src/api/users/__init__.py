"""User management and invitations."""

from api.users.routes import invitations_router
from api.users.routes import router as users_router

__all__ = ["invitations_router", "users_router"]
