# SQLModel definitions: imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .membership import OrgMember  # noqa: F401
from .dso import Dso  # noqa: F401
from .invitation import OrgInvitation  # noqa: F401
