# SQLModel definitions, imported here so SQLModel.metadata holds every table.
from .base import UUIDMixin, TimestampMixin, utcnow  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .user_org import UserOrg  # noqa: F401
from .session import UserSession  # noqa: F401
from .service import Service  # noqa: F401
from .subscription import OrgSubscription  # noqa: F401
from .agent import Agent  # noqa: F401
