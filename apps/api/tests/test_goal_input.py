"""
Goal Input Tests

Chip selection and validation, completeness scoring, contextual chip
suggestions, and the text handed to the prompt builder.
"""

import sys
import os
from datetime import date, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.challenge import ChipType, UserGoalData
from services.challenge.prompts import build_workout_prompt

TODAY = date(2026, 3, 2)


class TestChipSelection:
    def test_select_known_option(self):
        goals = UserGoalData()
        assert goals.select(ChipType.FITNESS_LEVEL, "beginner") == []
        assert goals.is_selected(ChipType.FITNESS_LEVEL)
        assert goals.selections[ChipType.FITNESS_LEVEL].display_text == "Beginner"

    def test_unknown_option(self):
        goals = UserGoalData()
        issues = goals.select(ChipType.FITNESS_LEVEL, "elite")
        assert issues == ["'elite' is not an option for fitness level"]
        assert not goals.is_selected(ChipType.FITNESS_LEVEL)

    def test_custom_requires_value(self):
        goals = UserGoalData()
        assert goals.select(ChipType.WORKOUT_LOCATION, "custom", "  ")
        assert goals.select(ChipType.WORKOUT_LOCATION, "custom", "hotel gym") == []
        assert goals.selections[ChipType.WORKOUT_LOCATION].effective_value == "hotel gym"

    def test_custom_time_needs_units(self):
        goals = UserGoalData()
        assert goals.select(ChipType.TIME_AVAILABLE, "custom", "45") == [
            "Please specify time units (e.g., '45 minutes', '1 hour')"
        ]
        assert goals.select(ChipType.TIME_AVAILABLE, "custom", "1 hour") == []

    def test_physical_stats_accepts_metric(self):
        goals = UserGoalData()
        assert goals.select(ChipType.PHYSICAL_STATS, "custom", "tall") != []
        assert goals.select(ChipType.PHYSICAL_STATS, "custom", "170 cm, 65 kg") == []

    def test_custom_value_dropped_for_regular_option(self):
        goals = UserGoalData()
        goals.select(ChipType.SEX, "female", "ignored")
        assert goals.selections[ChipType.SEX].custom_value is None
        assert goals.selections[ChipType.SEX].effective_value == "female"

    def test_reselect_replaces(self):
        goals = UserGoalData()
        goals.select(ChipType.FITNESS_LEVEL, "beginner")
        goals.select(ChipType.FITNESS_LEVEL, "advanced")
        assert goals.selections[ChipType.FITNESS_LEVEL].option.value == "advanced"

    def test_clear_selection(self):
        goals = UserGoalData()
        goals.select(ChipType.FITNESS_LEVEL, "beginner")
        goals.clear_selection(ChipType.FITNESS_LEVEL)
        assert not goals.is_selected(ChipType.FITNESS_LEVEL)


class TestQuality:
    def test_empty_input(self):
        goals = UserGoalData()
        assert goals.completeness_score == 0.0
        assert not goals.is_sufficient_for_ai
        assert goals.validation_issues == [
            "Please select your fitness level",
            "Please select your time per workout",
        ]

    def test_required_chips_make_input_sufficient(self):
        goals = UserGoalData()
        goals.select(ChipType.FITNESS_LEVEL, "beginner")
        goals.select(ChipType.TIME_AVAILABLE, "15-30 minutes")
        assert goals.is_sufficient_for_ai
        assert goals.validation_issues == []

    def test_completeness_score(self):
        goals = UserGoalData(free_form_text="Lose some weight")
        goals.select(ChipType.FITNESS_LEVEL, "beginner")
        goals.select(ChipType.TIME_AVAILABLE, "15-30 minutes")
        goals.select(ChipType.SEX, "male")
        assert round(goals.completeness_score, 2) == 0.65


class TestSuggestions:
    def test_contextual_chips_from_text(self):
        goals = UserGoalData(free_form_text="My knee hurts and I hate running")
        suggested = goals.suggested_chip_types
        assert ChipType.LIMITATIONS in suggested
        assert ChipType.PREFERENCES in suggested
        assert ChipType.EQUIPMENT not in suggested

    def test_keywords_match_whole_words(self):
        goals = UserGoalData(free_form_text="I want to be optimistic")
        assert ChipType.LIMITATIONS not in goals.suggested_chip_types

    def test_selected_chip_not_suggested(self):
        goals = UserGoalData(free_form_text="I have back pain")
        goals.select(ChipType.LIMITATIONS, "lower back pain")
        assert ChipType.LIMITATIONS not in goals.suggested_chip_types

    def test_smart_defaults(self):
        goals = UserGoalData(free_form_text="Beginner workouts at home, results in 2 weeks")
        defaults = goals.smart_defaults
        assert defaults[ChipType.FITNESS_LEVEL].value == "beginner"
        assert defaults[ChipType.WORKOUT_LOCATION].value == "at home"
        assert defaults[ChipType.TIMELINE].value == "2 weeks"


class TestOutput:
    def _goals(self):
        goals = UserGoalData(free_form_text="  Build core strength  ")
        goals.select(ChipType.FITNESS_LEVEL, "beginner")
        goals.select(ChipType.TIME_AVAILABLE, "30-45 minutes")
        return goals

    def test_complete_goal_text(self):
        assert self._goals().complete_goal_text == (
            "I'm a beginner. I can work out for 30-45 minutes per session. Build core strength"
        )

    def test_structured_data(self):
        data = self._goals().structured_data
        assert data["fitness_level"] == "beginner"
        assert data["free_form_goal"] == "Build core strength"

    def test_start_date(self):
        goals = self._goals()
        assert goals.effective_start_date(TODAY) == TODAY
        goals.set_start_date(TODAY + timedelta(days=2))
        assert goals.effective_start_date(TODAY) == TODAY + timedelta(days=2)

    def test_prompt_contains_goals_and_details(self):
        prompt = build_workout_prompt(self._goals())
        assert prompt.startswith("USER GOALS: I'm a beginner.")
        assert "- fitness level: beginner" in prompt
        assert "- time available: 30-45 minutes" in prompt
        assert "free_form_goal" not in prompt
