from enum import Enum

class VisitStatus(str, Enum):
    OPEN = "OPEN"
    COMPLETED = "COMPLETED"
    INCOMPLETE = "INCOMPLETE"

class AchievementCategory(str, Enum):
    EXPLORER = "EXPLORER"
    PRAYER_WARRIOR = "PRAYER_WARRIOR"
    STREAK = "STREAK"
    GEOGRAPHIC = "GEOGRAPHIC"
    SPECIAL = "SPECIAL"

class BadgeTier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"
