"""
Goal Input Aggregator

Collects free-form goal text and categorical "chip" answers into a single
structure that the prompt builder consumes.

Insufficient input is reported through `validation_issues`, never raised.
Natural-language dates in the goal text are left for the model to read;
only an explicitly picked start date changes the plan's start.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from services.challenge.constants import (
    CHIP_PHRASES,
    UNIVERSAL_CHIP_TYPES,
    ChipCategory,
    ChipOption,
    ChipType,
)

TEXT_WEIGHT = 0.3
CHIP_WEIGHT = 0.7


@dataclass
class ChipSelection:
    chip_type: ChipType
    option: ChipOption
    custom_value: Optional[str] = None
    selected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def effective_value(self) -> str:
        if self.custom_value and self.custom_value.strip():
            return self.custom_value.strip()
        return self.option.value

    @property
    def display_text(self) -> str:
        if self.custom_value and self.custom_value.strip():
            return self.custom_value.strip()
        return self.option.display_text

    @property
    def natural_language_phrase(self) -> str:
        return CHIP_PHRASES[self.chip_type].format(value=self.effective_value)


def _validate_physical_stats(value: str) -> List[str]:
    lowered = value.lower()
    has_height = "ft" in lowered or "cm" in lowered or "'" in lowered
    has_weight = "lbs" in lowered or "kg" in lowered or "pounds" in lowered
    if not has_height and not has_weight:
        return ["Please include both height and weight (e.g., '5'6\", 140 lbs')"]
    return []


def _validate_time_value(value: str) -> List[str]:
    lowered = value.lower()
    if not any(unit in lowered for unit in ("min", "hour", "hr")):
        return ["Please specify time units (e.g., '45 minutes', '1 hour')"]
    return []


_CUSTOM_VALIDATORS = {
    ChipType.PHYSICAL_STATS: _validate_physical_stats,
    ChipType.TIME_AVAILABLE: _validate_time_value,
}


def _mentions(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


@dataclass
class UserGoalData:
    """Goal-input state for one generation flow."""
    free_form_text: str = ""
    selections: Dict[ChipType, ChipSelection] = field(default_factory=dict)
    explicit_start_date: Optional[date] = None

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def update_free_form_text(self, text: str) -> None:
        self.free_form_text = text

    def select(self, chip_type: ChipType, value: str, custom_value: Optional[str] = None) -> List[str]:
        """
        Select an option for a chip.

        Returns a list of problems; the selection is stored only when the
        list is empty.
        """
        option = next((o for o in chip_type.options if o.value == value), None)
        if option is None:
            return [f"'{value}' is not an option for {chip_type.display_title.lower()}"]

        if option.is_custom:
            if not custom_value or not custom_value.strip():
                return [f"Please enter a value for {chip_type.display_title.lower()}"]
            validator = _CUSTOM_VALIDATORS.get(chip_type)
            issues = validator(custom_value) if validator else []
            if issues:
                return issues
        else:
            # Custom text only applies to the custom option
            custom_value = None

        self.selections[chip_type] = ChipSelection(chip_type, option, custom_value)
        return []

    def clear_selection(self, chip_type: ChipType) -> None:
        self.selections.pop(chip_type, None)

    def set_start_date(self, start: Optional[date]) -> None:
        self.explicit_start_date = start

    def is_selected(self, chip_type: ChipType) -> bool:
        return chip_type in self.selections

    # -------------------------------------------------------------------------
    # Quality
    # -------------------------------------------------------------------------

    @property
    def has_text(self) -> bool:
        return bool(self.free_form_text.strip())

    @property
    def completeness_score(self) -> float:
        selected = sum(1 for t in UNIVERSAL_CHIP_TYPES if self.is_selected(t))
        text_score = TEXT_WEIGHT if self.has_text else 0.0
        chip_score = selected / len(UNIVERSAL_CHIP_TYPES) * CHIP_WEIGHT
        return min(1.0, text_score + chip_score)

    @property
    def missing_critical_chips(self) -> List[ChipType]:
        return [t for t in ChipType if t.is_required and not self.is_selected(t)]

    @property
    def is_sufficient_for_ai(self) -> bool:
        return not self.missing_critical_chips

    @property
    def validation_issues(self) -> List[str]:
        return [f"Please select your {t.display_title.lower()}" for t in self.missing_critical_chips]

    # -------------------------------------------------------------------------
    # Output for the prompt builder
    # -------------------------------------------------------------------------

    @property
    def chip_selections_as_text(self) -> str:
        phrases = [self.selections[t].natural_language_phrase for t in ChipType if t in self.selections]
        return ". ".join(phrases)

    @property
    def complete_goal_text(self) -> str:
        chip_text = self.chip_selections_as_text
        user_text = self.free_form_text.strip()
        if not chip_text:
            return user_text
        if not user_text:
            return chip_text
        return f"{chip_text}. {user_text}"

    @property
    def structured_data(self) -> Dict[str, str]:
        data = {t.value: self.selections[t].effective_value for t in ChipType if t in self.selections}
        data["free_form_goal"] = self.free_form_text.strip()
        return data

    @property
    def suggested_chip_types(self) -> List[ChipType]:
        """Unselected contextual chips whose keywords appear in the goal text."""
        text = self.free_form_text.lower()
        if not text.strip():
            return []
        return [
            t for t in ChipType
            if t.category == ChipCategory.CONTEXTUAL
            and not self.is_selected(t)
            and any(_mentions(text, kw) for kw in t.trigger_keywords)
        ]

    @property
    def smart_defaults(self) -> Dict[ChipType, ChipOption]:
        """Options the goal text already implies."""
        text = self.free_form_text.lower()
        options = {t: {o.value: o for o in t.options} for t in ChipType}
        defaults = {}

        if "2 weeks" in text or "quickly" in text:
            defaults[ChipType.TIMELINE] = options[ChipType.TIMELINE]["2 weeks"]

        if "beginner" in text or "new to" in text:
            defaults[ChipType.FITNESS_LEVEL] = options[ChipType.FITNESS_LEVEL]["beginner"]
        elif "experienced" in text or "advanced" in text:
            defaults[ChipType.FITNESS_LEVEL] = options[ChipType.FITNESS_LEVEL]["advanced"]

        if "home" in text or "no gym" in text:
            defaults[ChipType.WORKOUT_LOCATION] = options[ChipType.WORKOUT_LOCATION]["at home"]
        elif "gym" in text:
            defaults[ChipType.WORKOUT_LOCATION] = options[ChipType.WORKOUT_LOCATION]["at the gym"]

        return defaults

    def effective_start_date(self, today: date) -> date:
        return self.explicit_start_date or today

    def to_dict(self, today: date) -> dict:
        return {
            "free_form_text": self.free_form_text,
            "selections": {
                t.value: {
                    "value": s.option.value,
                    "custom_value": s.custom_value,
                    "display_text": s.display_text,
                }
                for t, s in self.selections.items()
            },
            "explicit_start_date": self.explicit_start_date,
            "effective_start_date": self.effective_start_date(today),
            "completeness_score": round(self.completeness_score, 3),
            "is_sufficient_for_ai": self.is_sufficient_for_ai,
            "validation_issues": self.validation_issues,
            "suggested_chip_types": [t.value for t in self.suggested_chip_types],
            "smart_defaults": {t.value: o.value for t, o in self.smart_defaults.items()},
            "complete_goal_text": self.complete_goal_text,
        }
