# SQLModel definitions — imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .user_org import UserOrg  # noqa: F401
from .team import Team, TeamUser  # noqa: F401
from .invitation import Invitation  # noqa: F401
from .feature import Feature  # noqa: F401
from .plan import SubscriptionPlan, PlanFeature  # noqa: F401
from .subscription import OrgSubscription  # noqa: F401
