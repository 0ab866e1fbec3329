"""Quiz content bounds enforced by the in-memory catalog."""

QUESTION_TEXT_MIN_LENGTH: int = 5
QUESTION_TEXT_MAX_LENGTH: int = 50
ANSWER_TEXT_MIN_LENGTH: int = 1
ANSWER_TEXT_MAX_LENGTH: int = 30
MIN_ANSWERS_PER_QUESTION: int = 2
MAX_ANSWERS_PER_QUESTION: int = 6
MIN_POINTS: int = 1
MAX_POINTS: int = 10
MIN_DURATION_SECONDS: int = 1
MAX_QUIZ_DURATION_SECONDS: int = 180
QUIZ_NAME_MIN_LENGTH: int = 3
QUIZ_NAME_MAX_LENGTH: int = 30
QUIZ_DESCRIPTION_MAX_LENGTH: int = 100

# Display colours handed out to answer options.
ANSWER_COLOURS: dict[str, str] = {
    "blue": "#0000ff",
    "brown": "#a52a2a",
    "green": "#008000",
    "orange": "#ffa500",
    "purple": "#800080",
    "red": "#ff0000",
    "yellow": "#ffff00",
}
