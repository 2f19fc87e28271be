"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from collabflow.models.boards import Board
from collabflow.models.comments import Comment
from collabflow.models.notifications import Notification
from collabflow.models.projects import Project, ProjectMember
from collabflow.models.tasks import Task
from collabflow.models.users import User

__all__ = [
    "Board",
    "Comment",
    "Notification",
    "Project",
    "ProjectMember",
    "Task",
    "User",
]
