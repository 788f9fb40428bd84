from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlmodel import Field, Session, SQLModel, create_engine, select

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _score_key(score: dict[str, Any]) -> tuple[Any, Any]:
    metrics = score.get("metrics", {})
    return (metrics.get("elapsed_seconds", float("inf")), metrics.get("moves", float("inf")))


@dataclass
class ScoreRecord:
    id: str
    player: str
    difficulty: str
    maze_size: int
    metrics: dict[str, Any]
    created_at: str


class JsonScoreRepository:
    def __init__(self, path: str | Path, schema_version: int = 1):
        self.path = Path(path)
        self.schema_version = schema_version
        self._ensure_store()

    def _empty_doc(self) -> dict[str, Any]:
        return {"schema_version": self.schema_version, "scores": {}}

    def _ensure_store(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_doc(self._empty_doc())

    def _read_doc(self) -> dict[str, Any]:
        if not self.path.exists():
            return self._empty_doc()
        raw = self.path.read_text(encoding="utf-8").strip()
        if not raw:
            return self._empty_doc()
        doc = json.loads(raw)
        doc.setdefault("schema_version", self.schema_version)
        doc.setdefault("scores", {})
        return doc

    def _write_doc(self, doc: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(doc, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def record_score(
        self,
        player: str,
        difficulty: str,
        maze_size: int,
        metrics: dict[str, Any],
    ) -> dict[str, Any]:
        doc = self._read_doc()
        record = asdict(
            ScoreRecord(
                id=str(uuid4()),
                player=player,
                difficulty=difficulty,
                maze_size=maze_size,
                metrics=metrics,
                created_at=_utc_now_iso(),
            )
        )
        doc["scores"][record["id"]] = record
        doc["schema_version"] = self.schema_version
        self._write_doc(doc)
        logger.debug("Recorded score %s for %s (%s)", record["id"], player, difficulty)
        return record

    def get_score(self, score_id: str) -> dict[str, Any]:
        doc = self._read_doc()
        score = doc["scores"].get(score_id)
        if score is None:
            raise KeyError(f"Unknown score_id: {score_id}")
        return score

    def top_scores(self, difficulty: str | None = None, limit: int = 10) -> list[dict[str, Any]]:
        items = list(self._read_doc()["scores"].values())
        if difficulty is not None:
            items = [s for s in items if s.get("difficulty") == difficulty]
        items.sort(key=_score_key)
        return items[:limit]


class ScoreModel(SQLModel, table=True):
    __tablename__ = "scores"
    id: str = Field(primary_key=True)
    player: str
    difficulty: str = Field(index=True)
    maze_size: int
    metrics_json: str = Field(sa_column_kwargs={"name": "metrics"})
    created_at: str

    def as_dict(self) -> dict[str, Any]:
        metrics = json.loads(self.metrics_json) if isinstance(self.metrics_json, str) else self.metrics_json
        return {
            "id": self.id,
            "player": self.player,
            "difficulty": self.difficulty,
            "maze_size": self.maze_size,
            "metrics": metrics,
            "created_at": self.created_at,
        }


class SqliteScoreRepository:
    """SQLite-backed score store using SQLModel. Same interface as JsonScoreRepository."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{self.path}"
        self.engine = create_engine(url, connect_args={"check_same_thread": False})
        SQLModel.metadata.create_all(self.engine)

    def record_score(
        self,
        player: str,
        difficulty: str,
        maze_size: int,
        metrics: dict[str, Any],
    ) -> dict[str, Any]:
        row = ScoreModel(
            id=str(uuid4()),
            player=player,
            difficulty=difficulty,
            maze_size=maze_size,
            metrics_json=json.dumps(metrics),
            created_at=_utc_now_iso(),
        )
        record = row.as_dict()
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
        logger.debug("Recorded score %s for %s (%s)", record["id"], player, difficulty)
        return record

    def get_score(self, score_id: str) -> dict[str, Any]:
        with Session(self.engine) as session:
            row = session.get(ScoreModel, score_id)
            if row is None:
                raise KeyError(f"Unknown score_id: {score_id}")
            return row.as_dict()

    def top_scores(self, difficulty: str | None = None, limit: int = 10) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = select(ScoreModel)
            if difficulty is not None:
                stmt = stmt.where(ScoreModel.difficulty == difficulty)
            items = [row.as_dict() for row in session.exec(stmt).all()]
        items.sort(key=_score_key)
        return items[:limit]

    def close(self) -> None:
        self.engine.dispose()


def open_repo(path: str | Path):
    """Return SqliteScoreRepository for .db paths, JsonScoreRepository otherwise."""
    path = Path(path)
    if path.suffix == ".db":
        return SqliteScoreRepository(path)
    return JsonScoreRepository(path)
