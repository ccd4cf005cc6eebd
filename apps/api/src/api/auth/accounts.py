"""Role permissions, dashboard routing and single-use account tokens."""

import os
import secrets

from shared.schemas import UserRole

ALL_PERMISSIONS = "all"

PERMISSIONS: dict[str, str | list[str]] = {
    UserRole.ADMIN.value: ALL_PERMISSIONS,
    UserRole.SAAS.value: ALL_PERMISSIONS,
    UserRole.OWNER.value: ALL_PERMISSIONS,
    UserRole.ADVISOR.value: ["calls.view", "deals.view", "pipeline.view", "campaigns.view"],
    UserRole.CLIENT.value: ["calls.view", "deals.view", "pipeline.view"],
}

ADVISOR_DASHBOARD = "/advisor-dashboard.html"
CLIENT_DASHBOARD = "/client-dashboard.html"
DEFAULT_DASHBOARD = "/dashboard.html"


def permissions_for(role: str | None) -> str | list[str]:
    """Permissions granted to a role; unknown roles get admin rights."""
    return PERMISSIONS.get(role or UserRole.ADMIN.value, ALL_PERMISSIONS)


def redirect_for(role: str | None) -> str:
    """Dashboard a role lands on after login or signup."""
    if role in (UserRole.ADVISOR.value, UserRole.CONSULTANT.value):
        return ADVISOR_DASHBOARD
    if role == UserRole.CLIENT.value:
        return CLIENT_DASHBOARD
    return DEFAULT_DASHBOARD


def new_account_token() -> str:
    """64-char hex token for password resets and invitations."""
    return secrets.token_hex(32)


def app_base_url() -> str:
    return os.getenv("APP_BASE_URL", "https://www.growthmanagerpro.com").rstrip("/")
