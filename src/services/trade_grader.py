from typing import Mapping, Union

from models import ChecklistInput, GradeResult

# Checklist item -> improvement hint, in the order feedback is reported
FEEDBACK = (
    ("had_level", "Consider waiting for a key support/resistance level"),
    ("had_trend", "Trading with the trend increases probability of success"),
    ("had_patience_candle", "Patience candles confirm entry setups"),
    ("followed_rules", "Following your trading rules is crucial for consistency"),
)

GRADES = {100: "A", 75: "B", 50: "C", 25: "D", 0: "F"}

POINTS_PER_ITEM = 25


def grade(checklist: Union[ChecklistInput, Mapping]) -> GradeResult:
    """
    Score an LTP checklist: 25 points per item met, mapped to a letter grade,
    with one feedback line for every item that was missed.
    """
    if not isinstance(checklist, ChecklistInput):
        checklist = ChecklistInput.model_validate(dict(checklist))

    met = [getattr(checklist, item) for item, _ in FEEDBACK]
    score = POINTS_PER_ITEM * sum(met)
    feedback = [message for (_, message), ok in zip(FEEDBACK, met) if not ok]
    return GradeResult(score=score, grade=GRADES[score], feedback=feedback)
