from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class MeetingStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    ENDED = "ended"


# Allowed meeting transitions; ENDED is terminal.
MEETING_TRANSITIONS: dict["MeetingStatus", set["MeetingStatus"]] = {
    MeetingStatus.SCHEDULED: {MeetingStatus.ACTIVE, MeetingStatus.ENDED},
    MeetingStatus.ACTIVE: {MeetingStatus.ENDED},
    MeetingStatus.ENDED: set(),
}
