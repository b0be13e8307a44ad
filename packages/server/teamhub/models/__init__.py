# SQLModel definitions: imported here to ensure metadata is populated for Alembic.
from .base import CreatedAtMixin, LifecycleMixin, TimestampMixin, UUIDMixin  # noqa: F401
from .user import User  # noqa: F401
from .organization import Organization  # noqa: F401
from .membership import Membership  # noqa: F401
from .invite import MembershipInvite  # noqa: F401
from .org_settings import OrgSettings  # noqa: F401
from .oidc_client_config import OIDCClientConfig  # noqa: F401
