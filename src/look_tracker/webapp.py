"""FastAPI application exposing the look-time API."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .db import (
    database_connection,
    end_session,
    fetch_genre_totals,
    fetch_recent_look_times,
    fetch_user_session_counts,
    insert_look_times,
    insert_player,
    start_session,
    transaction,
)
from .models import LookRecord
from .paths import get_db_path
from .reporting import format_decimal_minutes, format_time

logger = logging.getLogger(__name__)


class PlayerPayload(BaseModel):
    playerName: str

    model_config = ConfigDict(extra="forbid")


class SessionStartPayload(BaseModel):
    playerId: int

    model_config = ConfigDict(extra="forbid")


class SessionEndPayload(BaseModel):
    sessionId: int

    model_config = ConfigDict(extra="forbid")


class LookTimeItem(BaseModel):
    objectName: str
    productGenre: Optional[str] = None
    totalTime: float = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


class LookTimePayload(BaseModel):
    sessionId: int
    items: list[LookTimeItem]

    model_config = ConfigDict(extra="forbid")


def create_app(*, db_path: Optional[Path] = None) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())

    app = FastAPI(title="Look Tracker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.db_path = resolved_db_path

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {"database_path": str(request.app.state.db_path)}

    @app.post("/player")
    def create_player(payload: PlayerPayload, request: Request) -> Dict[str, Any]:
        player_name = payload.playerName.strip()
        if not player_name:
            raise HTTPException(status_code=400, detail="playerName is required")
        with database_connection(request.app.state.db_path) as conn:
            player_id = insert_player(conn, player_name)
        logger.info("Created player %s (%d)", player_name, player_id)
        return {"success": True, "playerId": player_id}

    @app.post("/session/start")
    def session_start(payload: SessionStartPayload, request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            try:
                session_id = start_session(conn, payload.playerId)
            except sqlite3.IntegrityError as exc:
                raise HTTPException(status_code=404, detail="Player not found") from exc
        return {"success": True, "sessionId": session_id}

    @app.post("/session/end")
    def session_end(payload: SessionEndPayload, request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            try:
                end_session(conn, payload.sessionId)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Session not found") from exc
        return {"success": True}

    @app.post("/looktime")
    def post_look_time(payload: LookTimePayload, request: Request) -> Dict[str, Any]:
        now = datetime.now()
        records = [
            LookRecord(
                timestamp=now,
                object_name=item.objectName,
                category=item.productGenre or item.objectName,
                total_seconds=item.totalTime,
            )
            for item in payload.items
        ]
        with database_connection(request.app.state.db_path) as conn:
            try:
                with transaction(conn):
                    inserted = insert_look_times(conn, payload.sessionId, records)
            except sqlite3.IntegrityError as exc:
                raise HTTPException(status_code=404, detail="Session not found") from exc
        return {"success": True, "inserted": inserted}

    @app.get("/data")
    def data(
        request: Request,
        limit: int = Query(default=100, ge=1, le=1000),
    ) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            rows = fetch_recent_look_times(conn, limit)
        payload = [dict(row) for row in rows]
        return {"success": True, "data": payload, "count": len(payload)}

    @app.get("/user-sessions")
    def user_sessions(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            rows = fetch_user_session_counts(conn)
        payload = [
            {"user": row["user"], "session_count": int(row["session_count"])}
            for row in rows
        ]
        return {"success": True, "data": payload, "count": len(payload)}

    @app.get("/api/genres")
    def genres(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            rows = fetch_genre_totals(conn)
        return {
            "success": True,
            "data": [
                {
                    "genre": row["genre"],
                    "seconds": row["seconds"],
                    "objects": row["objects"],
                    "minutes": format_decimal_minutes(row["seconds"]),
                    "display": format_time(row["seconds"]),
                }
                for row in rows
            ],
        }

    return app
