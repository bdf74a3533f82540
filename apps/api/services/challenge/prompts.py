"""
Workout Plan Prompts

The system prompt pins the JSON shape and unit vocabulary the parser in
services.challenge.generation accepts. The user prompt carries the goal text
assembled by UserGoalData plus its structured chip answers.
"""

from typing import Dict

from services.challenge.constants import PLAN_LENGTH_DAYS, ExerciseUnit
from services.challenge.goal_input import UserGoalData

PROMPT_VERSION = "1.2.0"

ALLOWED_UNITS = sorted(u.value for u in ExerciseUnit)

SYSTEM_PROMPT = f"""You are a professional fitness trainer creating a personalized {PLAN_LENGTH_DAYS}-day workout plan.
Your response is parsed by software, so the JSON format below is mandatory.

PLAN REQUIREMENTS:
- Exactly {PLAN_LENGTH_DAYS} days, with dayNumber 1 through {PLAN_LENGTH_DAYS} in order
- Include 1-2 rest or active recovery days (1-3 light activities, 15-30 minutes, focus like "Active Recovery")
- Regular workout days have 4-6 exercises, 30-60 minutes in total, with a focus such as "Upper Body" or "Cardio"
- Match the user's experience level, schedule, location and equipment
- Make each day different and progressive across the plan
- Do not specify weights; users choose their own

UNITS - use only these exact values for "unit":
{", ".join(ALLOWED_UNITS)}
("reps" for counted movements, "seconds"/"minutes"/"hours" for durations,
"meters"/"yards"/"feet"/"kilometers"/"miles" for distances, "steps" for walking, "laps" for pool or track)

NUMBERS:
- "sets" and "quantity" are always positive integers, never text or decimals
- For "as many as possible" work, pick a concrete number such as 8-15 reps

RESPONSE FORMAT:
{{
  "summary": "Brief description of the plan",
  "days": [
    {{
      "dayNumber": 1,
      "focus": "Upper body strength",
      "exercises": [
        {{"name": "Push-ups", "sets": 3, "quantity": 12, "unit": "reps", "instructions": "Keep your body straight"}},
        {{"name": "Plank Hold", "sets": 3, "quantity": 30, "unit": "seconds", "instructions": "Keep core tight"}}
      ]
    }}
  ]
}}

Return ONLY the JSON object: no markdown, no code fences, no commentary. Start with {{ and end with }}."""


def _format_details(structured: Dict[str, str]) -> str:
    lines = []
    for key, value in structured.items():
        if key == "free_form_goal" or not value:
            continue
        lines.append(f"- {key.replace('_', ' ')}: {value}")
    return "\n".join(lines)


def build_workout_prompt(goal_data: UserGoalData) -> str:
    """Build the user prompt for one generation request."""
    parts = [f"USER GOALS: {goal_data.complete_goal_text}"]

    details = _format_details(goal_data.structured_data)
    if details:
        parts.append(f"USER DETAILS:\n{details}")

    parts.append(
        f"\nCreate the {PLAN_LENGTH_DAYS}-day plan for these goals. "
        "Respond with the JSON object only."
    )
    return "\n".join(parts)
