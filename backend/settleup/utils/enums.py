from enum import Enum


class SplitPolicy(str, Enum):
    EQUAL = "EQUAL"
    EXACT = "EXACT"


class ActivityType(str, Enum):
    EXPENSE = "EXPENSE"
    SETTLEMENT = "SETTLEMENT"
