# SQLModel definitions, imported here to ensure metadata is populated for create_all.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .profile import Profile  # noqa: F401
from .thread import Thread, ThreadMember  # noqa: F401
from .message import Message  # noqa: F401
from .meeting import Meeting  # noqa: F401
from .task import Task  # noqa: F401
from .activity_log import ActivityLog  # noqa: F401
