"""Static metadata describing QuizRank."""

APP_NAME = "QuizRank"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "QuizRank records quiz attempts, keeps each participant's best result per quiz "
    "and ranks participants on per-quiz leaderboards."
)
