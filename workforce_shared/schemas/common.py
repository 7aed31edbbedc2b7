from enum import Enum

from pydantic import BaseModel


class OrgRole(str, Enum):
    VIEWER = "viewer"
    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"


# Ordered lowest to highest privilege
ROLE_ORDER: list["OrgRole"] = [
    OrgRole.VIEWER,
    OrgRole.MEMBER,
    OrgRole.ADMIN,
    OrgRole.OWNER,
]


class Permission(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_ORG = "manage_org"
    BILLING = "billing"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class SessionType(str, Enum):
    WEB = "web"
    API = "api"
    MOBILE = "mobile"
    SERVICE = "service"


class LoginMethod(str, Enum):
    PASSWORD = "password"


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool
