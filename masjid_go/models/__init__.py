from masjid_go.models.user import User, UserProfile
from masjid_go.models.poi import PointOfInterest
from masjid_go.models.visit import Visit, DailyPoiStats
from masjid_go.models.gamification import AchievementDefinition, AchievementProgress, MonthlyLeaderboardSnapshot


__all__ = [
    "User",
    "UserProfile",
    "PointOfInterest",
    "Visit",
    "DailyPoiStats",
    "AchievementDefinition",
    "AchievementProgress",
    "MonthlyLeaderboardSnapshot",
]
