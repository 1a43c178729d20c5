from pathlib import Path

import pytest

from quizrank.core.services.result_store import InMemoryResultStore
from quizrank.core.services.sqlite_result_store import SqliteResultStore
from quizrank.utils.settings import Settings, build_store


def test_defaults_when_environment_is_empty():
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.port == 8000
    assert settings.store_backend == "memory"
    assert settings.quiz_dir is None


def test_values_are_read_from_environment(tmp_path):
    settings = Settings.from_env(
        {
            "QUIZRANK_HOST": "127.0.0.1",
            "QUIZRANK_PORT": "9001",
            "QUIZRANK_STORE": "SQLite",
            "QUIZRANK_DB_PATH": str(tmp_path / "r.db"),
            "QUIZRANK_QUIZ_DIR": str(tmp_path),
            "QUIZRANK_LOG_LEVEL": "debug",
            "QUIZRANK_MAX_RETRIES": "0",
        }
    )

    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.store_backend == "sqlite"
    assert settings.db_path == tmp_path / "r.db"
    assert settings.quiz_dir == Path(tmp_path)
    assert settings.log_level == "DEBUG"
    assert settings.max_retries == 0


@pytest.mark.parametrize(
    "environ",
    [
        {"QUIZRANK_PORT": "eighty"},
        {"QUIZRANK_PORT": "70000"},
        {"QUIZRANK_STORE": "mongo"},
        {"QUIZRANK_LOG_LEVEL": "loud"},
        {"QUIZRANK_MAX_RETRIES": "-1"},
    ],
)
def test_invalid_values_raise(environ):
    with pytest.raises(ValueError):
        Settings.from_env(environ)


def test_build_store(tmp_path):
    assert isinstance(build_store(Settings()), InMemoryResultStore)
    sqlite_store = build_store(Settings(store_backend="sqlite", db_path=tmp_path / "r.db"))
    assert isinstance(sqlite_store, SqliteResultStore)
