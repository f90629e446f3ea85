# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from models.user import User
from models.habit import Habit, HabitCategory, HabitFrequency
from models.daily_log import DailyLog
from models.streak import Streak
from models.xp_log import XPLog, XPAction
from models.report import Report
from models.revision_habit import RevisionHabit, RevisionStatus
from models.notification import Notification

__all__ = [
    "User",
    "Habit",
    "HabitCategory",
    "HabitFrequency",
    "DailyLog",
    "Streak",
    "XPLog",
    "XPAction",
    "Report",
    "RevisionHabit",
    "RevisionStatus",
    "Notification",
]
