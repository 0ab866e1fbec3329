"""Session lifecycle constants shared by the core services and the API."""

COUNTDOWN_SECONDS: float = 3
MAX_ACTIVE_SESSIONS_PER_QUIZ: int = 10
AUTO_START_MIN: int = 1
AUTO_START_MAX: int = 50

CHAT_MESSAGE_MIN_LENGTH: int = 1
CHAT_MESSAGE_MAX_LENGTH: int = 100

GENERATED_NAME_LETTERS: int = 5
GENERATED_NAME_DIGITS: int = 3
