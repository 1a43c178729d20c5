"""Result-related constants shared across core and server layers."""

DEFAULT_LEADERBOARD_LIMIT: int = 10
DEFAULT_MAX_WRITE_RETRIES: int = 5
PERFECT_PERCENTAGE: int = 100
DEFAULT_DB_PATH: str = "quizrank.db"
STORE_BACKENDS: tuple[str, ...] = ("memory", "sqlite")
