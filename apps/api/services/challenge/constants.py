"""
Constants for the 14-day challenge.

Closed enumerations for exercise units, plan status, badge rarity,
challenge health and goal-input chips, plus the option catalog per chip.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Tuple


PLAN_LENGTH_DAYS = 14

# Exercise sets must stay within this range
MIN_SETS = 1
MAX_SETS = 20


class UnitCategory(str, Enum):
    """What an exercise unit measures."""
    COUNT = "count"
    TIME = "time"
    DISTANCE = "distance"


class ExerciseUnit(str, Enum):
    """Units an exercise quantity can be expressed in."""
    REPS = "reps"
    STEPS = "steps"
    LAPS = "laps"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    METERS = "meters"
    YARDS = "yards"
    FEET = "feet"
    KILOMETERS = "kilometers"
    MILES = "miles"

    @property
    def category(self) -> UnitCategory:
        return UNIT_CATEGORIES[self]

    @property
    def short_name(self) -> str:
        return UNIT_SHORT_NAMES[self]

    @property
    def max_quantity(self) -> int:
        return UNIT_LIMITS[self]

    @property
    def suggested_range(self) -> Tuple[int, int]:
        return UNIT_SUGGESTED_RANGES[self]

    def is_valid_quantity(self, quantity: int) -> bool:
        """Positive and below the unit's sanity ceiling."""
        return 0 < quantity <= UNIT_LIMITS[self]

    def clamp_to_suggested(self, quantity: int) -> int:
        low, high = UNIT_SUGGESTED_RANGES[self]
        return max(low, min(high, quantity))

    def display_name_for(self, quantity: int) -> str:
        if self is ExerciseUnit.HOURS:
            return "hour" if quantity == 1 else "hours"
        if self is ExerciseUnit.FEET:
            return "foot" if quantity == 1 else "feet"
        return self.value


UNIT_CATEGORIES: Dict[ExerciseUnit, UnitCategory] = {
    ExerciseUnit.REPS: UnitCategory.COUNT,
    ExerciseUnit.STEPS: UnitCategory.COUNT,
    ExerciseUnit.LAPS: UnitCategory.COUNT,
    ExerciseUnit.SECONDS: UnitCategory.TIME,
    ExerciseUnit.MINUTES: UnitCategory.TIME,
    ExerciseUnit.HOURS: UnitCategory.TIME,
    ExerciseUnit.METERS: UnitCategory.DISTANCE,
    ExerciseUnit.YARDS: UnitCategory.DISTANCE,
    ExerciseUnit.FEET: UnitCategory.DISTANCE,
    ExerciseUnit.KILOMETERS: UnitCategory.DISTANCE,
    ExerciseUnit.MILES: UnitCategory.DISTANCE,
}

UNIT_SHORT_NAMES: Dict[ExerciseUnit, str] = {
    ExerciseUnit.REPS: "reps",
    ExerciseUnit.STEPS: "steps",
    ExerciseUnit.LAPS: "laps",
    ExerciseUnit.SECONDS: "sec",
    ExerciseUnit.MINUTES: "min",
    ExerciseUnit.HOURS: "hr",
    ExerciseUnit.METERS: "m",
    ExerciseUnit.YARDS: "yd",
    ExerciseUnit.FEET: "ft",
    ExerciseUnit.KILOMETERS: "km",
    ExerciseUnit.MILES: "mi",
}

# Upper sanity limits per unit
UNIT_LIMITS: Dict[ExerciseUnit, int] = {
    ExerciseUnit.REPS: 1000,
    ExerciseUnit.STEPS: 100000,     # daily steps
    ExerciseUnit.LAPS: 200,
    ExerciseUnit.SECONDS: 3600,
    ExerciseUnit.MINUTES: 180,
    ExerciseUnit.HOURS: 12,
    ExerciseUnit.METERS: 10000,
    ExerciseUnit.YARDS: 10000,
    ExerciseUnit.FEET: 10000,
    ExerciseUnit.KILOMETERS: 100,
    ExerciseUnit.MILES: 50,
}

# Ranges used to pull out-of-range generated quantities back in
UNIT_SUGGESTED_RANGES: Dict[ExerciseUnit, Tuple[int, int]] = {
    ExerciseUnit.REPS: (1, 50),
    ExerciseUnit.STEPS: (100, 20000),
    ExerciseUnit.LAPS: (1, 50),
    ExerciseUnit.SECONDS: (10, 300),
    ExerciseUnit.MINUTES: (1, 120),
    ExerciseUnit.HOURS: (1, 4),
    ExerciseUnit.METERS: (50, 5000),
    ExerciseUnit.YARDS: (50, 3000),
    ExerciseUnit.FEET: (10, 1000),
    ExerciseUnit.KILOMETERS: (1, 25),
    ExerciseUnit.MILES: (1, 15),
}


class PlanStatus(str, Enum):
    """Stored plan status. Completed and finished are derived, never stored."""
    SUGGESTED = "suggested"
    ACTIVE = "active"


class ChallengeHealth(str, Enum):
    """Health of an active challenge, ordered best to worst."""
    EXCELLENT = "excellent"
    ON_TRACK = "on_track"
    SLIGHTLY_BEHIND = "slightly_behind"
    BEHIND_BUT_RECOVERABLE = "behind_but_recoverable"
    STRUGGLING = "struggling"
    NEEDS_SUPPORT = "needs_support"

    @property
    def description(self) -> str:
        return HEALTH_DESCRIPTIONS[self]


HEALTH_DESCRIPTIONS: Dict[ChallengeHealth, str] = {
    ChallengeHealth.EXCELLENT: "Crushing it!",
    ChallengeHealth.ON_TRACK: "On track",
    ChallengeHealth.SLIGHTLY_BEHIND: "Slightly behind",
    ChallengeHealth.BEHIND_BUT_RECOVERABLE: "Behind but recoverable",
    ChallengeHealth.STRUGGLING: "Struggling but not out",
    ChallengeHealth.NEEDS_SUPPORT: "Needs support",
}


class BadgeRarity(str, Enum):
    """Badge tiers, lowest first."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    LEGENDARY = "legendary"

    @property
    def sort_order(self) -> int:
        return list(BadgeRarity).index(self)


# =============================================================================
# GOAL INPUT CHIPS
# =============================================================================

class ChipImportance(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ChipCategory(str, Enum):
    UNIVERSAL = "universal"      # always offered
    CONTEXTUAL = "contextual"    # offered when the goal text mentions it


class ChipType(str, Enum):
    """Goal-input categories. Declaration order is display/validation order."""
    FITNESS_LEVEL = "fitness_level"
    SEX = "sex"
    PHYSICAL_STATS = "physical_stats"
    TIME_AVAILABLE = "time_available"
    WORKOUT_LOCATION = "workout_location"
    WEEKLY_FREQUENCY = "weekly_frequency"
    TIMELINE = "timeline"
    LIMITATIONS = "limitations"
    SCHEDULE = "schedule"
    EQUIPMENT = "equipment"
    EXPERIENCE = "experience"
    PREFERENCES = "preferences"

    @property
    def category(self) -> ChipCategory:
        if self in UNIVERSAL_CHIP_TYPES:
            return ChipCategory.UNIVERSAL
        return ChipCategory.CONTEXTUAL

    @property
    def importance(self) -> ChipImportance:
        return CHIP_IMPORTANCE[self]

    @property
    def is_required(self) -> bool:
        return CHIP_IMPORTANCE[self] == ChipImportance.CRITICAL

    @property
    def display_title(self) -> str:
        return CHIP_TITLES[self]

    @property
    def options(self) -> List["ChipOption"]:
        return CHIP_OPTIONS[self]

    @property
    def allows_custom(self) -> bool:
        return any(option.is_custom for option in CHIP_OPTIONS[self])

    @property
    def trigger_keywords(self) -> List[str]:
        return CHIP_TRIGGER_KEYWORDS.get(self, [])


UNIVERSAL_CHIP_TYPES = (
    ChipType.FITNESS_LEVEL,
    ChipType.SEX,
    ChipType.PHYSICAL_STATS,
    ChipType.TIME_AVAILABLE,
    ChipType.WORKOUT_LOCATION,
    ChipType.WEEKLY_FREQUENCY,
)

CHIP_IMPORTANCE: Dict[ChipType, ChipImportance] = {
    ChipType.FITNESS_LEVEL: ChipImportance.CRITICAL,
    ChipType.TIME_AVAILABLE: ChipImportance.CRITICAL,
    ChipType.SEX: ChipImportance.HIGH,
    ChipType.WORKOUT_LOCATION: ChipImportance.HIGH,
    ChipType.PHYSICAL_STATS: ChipImportance.MEDIUM,
    ChipType.WEEKLY_FREQUENCY: ChipImportance.MEDIUM,
    ChipType.TIMELINE: ChipImportance.MEDIUM,
    ChipType.LIMITATIONS: ChipImportance.HIGH,      # safety
    ChipType.SCHEDULE: ChipImportance.LOW,
    ChipType.EQUIPMENT: ChipImportance.MEDIUM,
    ChipType.EXPERIENCE: ChipImportance.LOW,
    ChipType.PREFERENCES: ChipImportance.LOW,
}

CHIP_TITLES: Dict[ChipType, str] = {
    ChipType.FITNESS_LEVEL: "Fitness Level",
    ChipType.SEX: "Sex",
    ChipType.PHYSICAL_STATS: "Height & Weight",
    ChipType.TIME_AVAILABLE: "Time Per Workout",
    ChipType.WORKOUT_LOCATION: "Where You'll Work Out",
    ChipType.WEEKLY_FREQUENCY: "Days Per Week",
    ChipType.TIMELINE: "Your Timeline",
    ChipType.LIMITATIONS: "Injuries/Limitations",
    ChipType.SCHEDULE: "Schedule Restrictions",
    ChipType.EQUIPMENT: "Available Equipment",
    ChipType.EXPERIENCE: "Past Experience",
    ChipType.PREFERENCES: "Exercise Preferences",
}


@dataclass(frozen=True)
class ChipOption:
    """One selectable answer for a chip."""
    value: str
    display_text: str
    description: str = ""
    is_custom: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


CUSTOM_OPTION = ChipOption("custom", "Custom", "Enter your own", is_custom=True)


CHIP_OPTIONS: Dict[ChipType, List[ChipOption]] = {
    ChipType.FITNESS_LEVEL: [
        ChipOption("beginner", "Beginner", "New to fitness or returning after a long break"),
        ChipOption("intermediate", "Intermediate", "Exercise regularly, comfortable with basic movements"),
        ChipOption("advanced", "Advanced", "Very experienced, ready for challenging workouts"),
    ],
    ChipType.SEX: [
        ChipOption("male", "Male"),
        ChipOption("female", "Female"),
        ChipOption("prefer not to say", "Prefer not to say"),
    ],
    ChipType.PHYSICAL_STATS: [
        ChipOption("custom", "Enter height & weight", "Tap to enter your measurements", is_custom=True),
    ],
    ChipType.TIME_AVAILABLE: [
        ChipOption("15-30 minutes", "15-30 minutes", "Quick, efficient workouts"),
        ChipOption("30-45 minutes", "30-45 minutes", "Standard workout duration"),
        ChipOption("45-60 minutes", "45-60 minutes", "Longer, comprehensive sessions"),
        ChipOption("60+ minutes", "60+ minutes", "Extended training sessions"),
        CUSTOM_OPTION,
    ],
    ChipType.WORKOUT_LOCATION: [
        ChipOption("at home", "At Home", "Bodyweight and minimal equipment exercises"),
        ChipOption("at the gym", "At the Gym", "Full equipment access"),
        ChipOption("outdoors", "Outdoors", "Running, hiking, outdoor activities"),
        ChipOption("home and gym", "Home & Gym", "Flexible between locations"),
        CUSTOM_OPTION,
    ],
    ChipType.WEEKLY_FREQUENCY: [
        ChipOption("3 days", "3 days per week", "Balanced approach with recovery time"),
        ChipOption("4-5 days", "4-5 days per week", "Regular, consistent training"),
        ChipOption("6+ days", "6+ days per week", "High-frequency training"),
        ChipOption("flexible", "Flexible schedule", "Adapt based on availability"),
        CUSTOM_OPTION,
    ],
    ChipType.TIMELINE: [
        ChipOption("2 weeks", "2 weeks (recommended)", "Perfect for building habits and seeing initial results"),
        ChipOption("1 month", "1 month", "Extended goal with multiple milestones"),
        ChipOption("3 months", "3 months", "Long-term transformation goal"),
        ChipOption("6+ months", "6+ months", "Major lifestyle change commitment"),
        CUSTOM_OPTION,
    ],
    ChipType.LIMITATIONS: [
        ChipOption("lower back pain", "Lower back pain", "Avoid exercises that strain the lower back"),
        ChipOption("knee problems", "Knee problems", "Low-impact alternatives for joint protection"),
        ChipOption("shoulder injury", "Shoulder injury", "Modified upper body movements"),
        ChipOption("ankle/foot issues", "Ankle/foot issues", "Limited weight-bearing exercises"),
        ChipOption("wrist/elbow pain", "Wrist/elbow pain", "Avoid high-impact arm exercises"),
        ChipOption("recent surgery", "Recent surgery", "Following medical restrictions"),
        ChipOption("chronic condition", "Chronic condition", "Working with ongoing health considerations"),
        CUSTOM_OPTION,
    ],
    ChipType.SCHEDULE: [
        ChipOption("early morning only", "Early morning only", "Before work/commitments"),
        ChipOption("lunch break workouts", "Lunch break workouts", "Quick midday sessions"),
        ChipOption("evening after work", "Evening after work", "End-of-day fitness routine"),
        ChipOption("weekends only", "Weekends only", "Saturday and Sunday focused"),
        ChipOption("flexible weekdays", "Flexible weekdays", "Adapt to daily schedule"),
        ChipOption("avoid Sundays", "Avoid Sundays", "Sunday rest day preference"),
        CUSTOM_OPTION,
    ],
    ChipType.EQUIPMENT: [
        ChipOption("no equipment", "No equipment", "Bodyweight exercises only"),
        ChipOption("basic home gym", "Basic home gym", "Dumbbells, resistance bands, mat"),
        ChipOption("full home gym", "Full home gym", "Weights, machines, cardio equipment"),
        ChipOption("gym membership", "Gym membership", "Access to all gym equipment"),
        ChipOption("outdoor gear", "Outdoor gear", "Running shoes, bike, hiking equipment"),
        ChipOption("resistance bands only", "Resistance bands only", "Portable, versatile equipment"),
        ChipOption("dumbbells only", "Dumbbells only", "Adjustable or fixed weight dumbbells"),
        CUSTOM_OPTION,
    ],
    ChipType.EXPERIENCE: [
        ChipOption("complete beginner", "Complete beginner", "Never exercised regularly before"),
        ChipOption("used to be active", "Used to be active", "Was fit in the past, returning to fitness"),
        ChipOption("some experience", "Some experience", "Occasional workouts, basic knowledge"),
        ChipOption("former athlete", "Former athlete", "Competitive sports background"),
        ChipOption("gym regular", "Gym regular", "Consistent gym-goer for months/years"),
        ChipOption("personal trainer", "Personal trainer background", "Professional fitness knowledge"),
        CUSTOM_OPTION,
    ],
    ChipType.PREFERENCES: [
        ChipOption("love cardio", "Love cardio", "Running, cycling, high-energy workouts"),
        ChipOption("prefer strength training", "Prefer strength training", "Weight lifting, resistance exercises"),
        ChipOption("enjoy yoga/stretching", "Enjoy yoga/stretching", "Flexibility and mindfulness focus"),
        ChipOption("like variety", "Like variety", "Mix of different exercise types"),
        ChipOption("hate running", "Hate running", "Avoid traditional cardio activities"),
        ChipOption("no gym intimidation", "Gym intimidation", "Prefer home or outdoor workouts"),
        ChipOption("team sports", "Team sports", "Social, competitive activities"),
        ChipOption("solo workouts", "Solo workouts", "Independent, self-motivated training"),
        CUSTOM_OPTION,
    ],
}

# Keywords in the goal text that surface a contextual chip
CHIP_TRIGGER_KEYWORDS: Dict[ChipType, List[str]] = {
    ChipType.TIMELINE: [
        "2 weeks", "2-weeks", "two weeks", "month", "months", "3 months", "6 months",
        "quickly", "fast", "asap", "soon", "deadline", "by", "before",
        "timeline", "time frame", "timeframe", "goal date", "target date", "urgent", "rush",
    ],
    ChipType.LIMITATIONS: [
        "injury", "injured", "hurt", "pain", "back pain", "knee", "shoulder", "ankle", "wrist",
        "can't", "cannot", "unable", "avoid", "limitation", "limited", "restrict", "restricted",
        "medical", "doctor", "physician", "physical therapy", "pt", "rehab",
        "arthritis", "surgery", "recovery",
    ],
    ChipType.SCHEDULE: [
        "busy", "schedule", "time", "available", "work", "job", "office", "shift",
        "weekends", "weekdays", "week days",
        "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
        "morning", "afternoon", "evening", "night", "free time", "spare time",
        "travel", "vacation", "trip",
    ],
    ChipType.EQUIPMENT: [
        "no gym", "home", "house", "apartment", "weights", "dumbbells", "barbells",
        "equipment", "gear", "machines", "kettlebell", "resistance bands", "bands",
        "treadmill", "bike", "bicycle", "pull up bar", "yoga mat", "bodyweight", "no equipment",
    ],
    ChipType.EXPERIENCE: [
        "used to", "before", "previously", "past", "experience", "experienced", "trained",
        "athlete", "athletic", "sports", "beginner", "new to", "never", "first time",
        "years ago", "months ago", "college", "high school", "university",
        "competitive", "team", "coach",
    ],
    ChipType.PREFERENCES: [
        "hate", "love", "enjoy", "like", "dislike", "don't like", "prefer",
        "favorite", "favourite", "best", "boring", "fun", "exciting", "challenging",
        "cardio", "strength", "yoga", "pilates", "running", "swimming", "cycling",
        "outdoor", "indoor",
    ],
}

# Sentence templates used to turn a selection into goal text
CHIP_PHRASES: Dict[ChipType, str] = {
    ChipType.FITNESS_LEVEL: "I'm a {value}",
    ChipType.SEX: "I'm {value}",
    ChipType.PHYSICAL_STATS: "My physical stats: {value}",
    ChipType.TIME_AVAILABLE: "I can work out for {value} per session",
    ChipType.WORKOUT_LOCATION: "I'll be working out {value}",
    ChipType.WEEKLY_FREQUENCY: "I can work out {value}",
    ChipType.TIMELINE: "My timeline is {value}",
    ChipType.LIMITATIONS: "I have {value}",
    ChipType.SCHEDULE: "My schedule: {value}",
    ChipType.EQUIPMENT: "Equipment available: {value}",
    ChipType.EXPERIENCE: "My experience: {value}",
    ChipType.PREFERENCES: "My preferences: {value}",
}
