"""FastAPI server that exposes result, statistics and leaderboard endpoints."""

from __future__ import annotations

from dataclasses import asdict
import logging

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel
import uvicorn

from quizrank.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from quizrank.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    USER_ID_HEADER,
    USERNAME_HEADER,
)
from quizrank.core.errors import InvalidArgumentError, NotFoundError, StorageUnavailableError
from quizrank.core.models import AttemptSubmission, LeaderboardEntry, ResultRecord
from quizrank.core.results_manager import ResultsManager

logger = logging.getLogger(__name__)


class ResultPayload(BaseModel):
    """Payload schema for a completed quiz attempt."""

    quiz_id: str | None = None
    answers: list[int | None] | None = None
    time_spent: int | None = 0


class Identity(BaseModel):
    """Already-authenticated caller, as forwarded by the auth layer."""

    user_id: str
    username: str | None = None


def _current_identity(
    user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    username: str | None = Header(default=None, alias=USERNAME_HEADER),
) -> Identity:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required.")
    cleaned_name = username.strip() if username else None
    return Identity(user_id=user_id.strip(), username=cleaned_name or None)


def _get_results_manager_dependency(results_manager: ResultsManager):
    def dependency() -> ResultsManager:
        return results_manager

    return dependency


def _record_to_dict(record: ResultRecord) -> dict[str, object]:
    return {
        "quiz_id": record.quiz_id,
        "username": record.username,
        "score": record.score,
        "total_questions": record.total_questions,
        "percentage": record.percentage,
        "time_spent": record.time_spent,
        "attempts": record.attempts,
        "completed_at": record.completed_at.isoformat(),
    }


def _entry_to_dict(entry: LeaderboardEntry) -> dict[str, object]:
    return {
        "username": entry.username,
        "score": entry.score,
        "percentage": entry.percentage,
        "time_spent": entry.time_spent,
        "completed_at": entry.completed_at.isoformat(),
    }


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, InvalidArgumentError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    logger.error("Result storage unavailable: %s", exc)
    return HTTPException(status_code=503, detail="Result storage is unavailable, try again later.")


def create_api_app(results_manager: ResultsManager) -> FastAPI:
    """Create a FastAPI application wired to the provided results manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    results_manager_dep = _get_results_manager_dependency(results_manager)

    @app.get("/results/leaderboard/{quiz_id}")
    def get_leaderboard(
        quiz_id: str,
        limit: str | None = None,
        manager: ResultsManager = Depends(results_manager_dep),
    ) -> dict[str, object]:
        try:
            entries = manager.get_leaderboard(quiz_id, limit)
        except StorageUnavailableError as exc:
            raise _to_http_error(exc) from exc
        return {"leaderboard": [_entry_to_dict(entry) for entry in entries]}

    @app.get("/results/stats")
    def get_stats(
        identity: Identity = Depends(_current_identity),
        manager: ResultsManager = Depends(results_manager_dep),
    ) -> dict[str, object]:
        try:
            stats = manager.get_stats(identity.user_id)
        except StorageUnavailableError as exc:
            raise _to_http_error(exc) from exc
        return {"stats": asdict(stats)}

    @app.get("/results/quiz/{quiz_id}")
    def get_quiz_result(
        quiz_id: str,
        identity: Identity = Depends(_current_identity),
        manager: ResultsManager = Depends(results_manager_dep),
    ) -> dict[str, object]:
        try:
            record = manager.get_quiz_result(identity.user_id, quiz_id)
        except StorageUnavailableError as exc:
            raise _to_http_error(exc) from exc
        if record is None:
            return {"result": None, "message": "No result found for this quiz"}
        return {"result": _record_to_dict(record)}

    @app.delete("/results/quiz/{quiz_id}")
    def delete_quiz_result(
        quiz_id: str,
        identity: Identity = Depends(_current_identity),
        manager: ResultsManager = Depends(results_manager_dep),
    ) -> dict[str, object]:
        try:
            manager.delete_quiz_result(identity.user_id, quiz_id)
        except (NotFoundError, StorageUnavailableError) as exc:
            raise _to_http_error(exc) from exc
        return {"message": "Result deleted successfully"}

    @app.post("/results", status_code=201)
    def submit_result(
        payload: ResultPayload,
        identity: Identity = Depends(_current_identity),
        manager: ResultsManager = Depends(results_manager_dep),
    ) -> dict[str, object]:
        try:
            report = manager.submit_attempt(
                AttemptSubmission(
                    user_id=identity.user_id,
                    quiz_id=payload.quiz_id or "",
                    answers=payload.answers,
                    time_spent=payload.time_spent,
                    username=identity.username,
                )
            )
        except (InvalidArgumentError, NotFoundError, StorageUnavailableError) as exc:
            raise _to_http_error(exc) from exc
        return {"message": "Result saved successfully", "result": asdict(report)}

    @app.get("/results")
    def get_user_results(
        identity: Identity = Depends(_current_identity),
        manager: ResultsManager = Depends(results_manager_dep),
    ) -> dict[str, object]:
        try:
            records = manager.get_user_results(identity.user_id)
        except StorageUnavailableError as exc:
            raise _to_http_error(exc) from exc
        return {"results": [_record_to_dict(record) for record in records]}

    return app


def run_api_server(
    results_manager: ResultsManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(results_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    server.run()
