from __future__ import annotations

import random
from typing import List, Sequence, Tuple

from survey_insights.models.survey import Choice, Question, Response, SurveyData

AGE_GROUPS = ["18-24", "25-34", "35-44", "45-54", "55-64", "65+"]
GENDERS = ["Male", "Female", "Non-binary", "Prefer not to say"]
FAMILY_COMPOSITIONS = [
    "Single",
    "Couple, no children",
    "Family with young children",
    "Family with older children",
    "Empty nester",
]
INCOME_RANGES = ["Under $30k", "$30k-$60k", "$60k-$100k", "$100k-$150k", "Over $150k"]
REGIONS = ["Northeast", "Southeast", "Midwest", "Southwest", "West", "Outside US"]

LIKELIHOOD = ["Very likely", "Somewhat likely", "Not very likely", "Not at all likely"]

# Question groups used by the dashboard layout.
QUESTION_GROUPS: dict[str, Tuple[str, ...]] = {
    "Travel Intent": ("Q1", "Q2", "Q5"),
    "Booking Behavior": ("Q3", "Q6", "Q7", "Q8"),
    "Travel Preferences": ("Q4",),
}


def _question(question_id: str, text: str, question_type: str, labels: Sequence[str]) -> Question:
    return Question(
        id=question_id,
        text=text,
        type=question_type,
        choices=[Choice(id=f"{question_id}_{i}", text=label) for i, label in enumerate(labels, start=1)],
    )


def travel_survey_questions() -> List[Question]:
    """The eight-question travel survey schema."""

    return [
        _question(
            "Q1",
            "Do you plan on traveling domestically or internationally in the next 12 months?",
            "single_choice",
            ["Domestic only", "International only", "Both domestic and international", "No travel plans"],
        ),
        _question(
            "Q2",
            "What type of trip are you planning next for travel in the coming 12 months?",
            "single_choice",
            ["Beach vacation", "City break", "Adventure trip", "Cruise", "Cultural tour"],
        ),
        _question(
            "Q3",
            "Which of the following resources would you use the most during listed phases of a travel booking journey?",
            "multiple_choice",
            ["Travel websites", "Social media", "Travel agents", "Friends and family recommendations", "Review sites"],
        ),
        _question(
            "Q4",
            "How likely are you to agree with the following statements?",
            "scale",
            [
                "I prefer to book all-inclusive packages",
                "I like to plan my own itinerary",
                "Price is more important than destination",
                "I prefer luxury travel experiences",
            ],
        ),
        _question(
            "Q5",
            "Considering your potential trip in the next 12 months, how best do you like to travel "
            "and explore the destination and various experiences?",
            "single_choice",
            ["Guided tours", "Self-guided exploration", "Mix of guided and self-guided", "Resort/hotel stay with limited exploration"],
        ),
        _question(
            "Q6",
            "Once you have decided your destination and travel dates, How likely are you to change "
            "your destination if you find a cheaper flight?",
            "single_choice",
            LIKELIHOOD,
        ),
        _question(
            "Q7",
            "Once you have decided your destination and travel dates, How likely are you to change "
            "your destination if you find a cheaper packed holiday deal?",
            "single_choice",
            LIKELIHOOD,
        ),
        _question(
            "Q8",
            "Have you recently booked any trip in the last 6 months?",
            "single_choice",
            ["Yes", "No"],
        ),
    ]


def _pick(rng: random.Random, question_id: str, thresholds: Sequence[float]) -> str:
    """Pick a choice id using cumulative probability thresholds."""

    roll = rng.random()
    for index, threshold in enumerate(thresholds, start=1):
        if roll < threshold:
            return f"{question_id}_{index}"
    return f"{question_id}_{len(thresholds) + 1}"


def generate_mock_responses(count: int, *, seed: int | None = None) -> List[Response]:
    """Generate ``count`` responses with realistic answer distributions."""

    rng = random.Random(seed)
    responses: List[Response] = []
    for i in range(count):
        q3_options = ["Q3_1", "Q3_2", "Q3_3", "Q3_4", "Q3_5"]
        q3_answer = rng.sample(q3_options, rng.randint(1, 3))

        responses.append(
            Response(
                id=f"resp_{i}",
                demographics={
                    "age_group": rng.choice(AGE_GROUPS),
                    "gender": rng.choice(GENDERS),
                    "family_composition": rng.choice(FAMILY_COMPOSITIONS),
                    "income_range": rng.choice(INCOME_RANGES),
                    "region": rng.choice(REGIONS),
                },
                answers={
                    "Q1": _pick(rng, "Q1", (0.53, 0.69, 0.85)),
                    "Q2": _pick(rng, "Q2", (0.29, 0.57, 0.78, 0.89)),
                    "Q3": q3_answer,
                    "Q4": {f"Q4_{item}": rng.randint(1, 5) for item in range(1, 5)},
                    "Q5": f"Q5_{rng.randint(1, 4)}",
                    "Q6": _pick(rng, "Q6", (0.25, 0.55, 0.80)),
                    "Q7": _pick(rng, "Q7", (0.30, 0.60, 0.85)),
                    "Q8": "Q8_1" if rng.random() < 0.65 else "Q8_2",
                },
                weight=1 + rng.random() * 0.5,
            )
        )
    return responses


def generate_mock_survey(count: int = 500, *, seed: int | None = None) -> SurveyData:
    """Return the travel survey populated with generated responses."""

    return SurveyData(
        title="Travel Survey 2025",
        description="Annual travel habits and preferences survey",
        questions=travel_survey_questions(),
        responses=generate_mock_responses(count, seed=seed),
    )
