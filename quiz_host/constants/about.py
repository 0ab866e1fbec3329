"""Static metadata describing QuizHost."""

APP_NAME = "QuizHost"
APP_VERSION = "0.1"
