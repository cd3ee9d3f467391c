"""SQLModel persistence for creatures and battles.

Creature records and battle records live in two tables. A battle is stored
as a single JSON blob (the serialized ``BattleState``) plus a few indexed
columns for listing. Repository functions take an explicit ``Session`` so
a whole read-compute-write cycle can run inside one transaction.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlmodel import JSON, Column, Field, Session, SQLModel, create_engine, select

from pokebattle.core.creature import Creature
from pokebattle.core.errors import NotFound
from pokebattle.core.state import BattleState
from pokebattle.utils.config import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

class CreatureRecord(SQLModel, table=True):
    """Persistent creature."""

    __tablename__ = "creatures"  # type: ignore[assignment]

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    types: list = Field(default_factory=list, sa_column=Column(JSON))
    hp: int
    attack: int
    defense: int
    speed: int
    moves: list = Field(default_factory=list, sa_column=Column(JSON))
    level: int = 1
    xp: int = 0
    description: str = ""
    image_url: str | None = None

    @classmethod
    def from_creature(cls, creature: Creature) -> "CreatureRecord":
        return cls(**creature.model_dump(mode="json"))

    def to_creature(self) -> Creature:
        return Creature.model_validate(self.model_dump())


class BattleRecord(SQLModel, table=True):
    """Persistent record of a battle (past or in-progress)."""

    __tablename__ = "battles"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    battle_id: str = Field(index=True, unique=True)  # UUID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # BattleState.status value
    status: str = Field(default="active", index=True)
    turn_number: int = 0

    # Battle state (full JSON blob -- loaded into BattleState model)
    state_json: dict = Field(default_factory=dict, sa_column=Column(JSON))


# ---------------------------------------------------------------------------
# Repository functions
# ---------------------------------------------------------------------------

def get_creature(session: Session, creature_id: str) -> Creature:
    record = session.get(CreatureRecord, creature_id)
    if record is None:
        raise NotFound(f"Creature {creature_id} not found")
    return record.to_creature()


def get_creatures(session: Session, creature_ids: list[str]) -> dict[str, Creature]:
    """Load several creatures at once, keyed by id."""
    return {cid: get_creature(session, cid) for cid in dict.fromkeys(creature_ids)}


def list_creatures(session: Session, limit: int = 100, offset: int = 0) -> list[Creature]:
    stmt = select(CreatureRecord).order_by(CreatureRecord.name).offset(offset).limit(limit)
    return [r.to_creature() for r in session.exec(stmt).all()]


def save_creature(session: Session, creature: Creature) -> None:
    """Insert or update a creature. The caller commits."""
    record = session.get(CreatureRecord, creature.id)
    if record is None:
        session.add(CreatureRecord.from_creature(creature))
        return
    for key, value in creature.model_dump(mode="json").items():
        setattr(record, key, value)
    session.add(record)


def get_battle(session: Session, battle_id: str) -> BattleState:
    stmt = select(BattleRecord).where(BattleRecord.battle_id == battle_id)
    record = session.exec(stmt).first()
    if record is None:
        raise NotFound(f"Battle {battle_id} not found")
    return BattleState.model_validate(record.state_json)


def save_battle(session: Session, state: BattleState) -> None:
    """Insert or overwrite a battle record. The caller commits."""
    state.updated_at = datetime.now(timezone.utc)
    stmt = select(BattleRecord).where(BattleRecord.battle_id == state.battle_id)
    record = session.exec(stmt).first()
    if record is None:
        record = BattleRecord(battle_id=state.battle_id, created_at=state.created_at)
    record.status = state.status
    record.turn_number = state.turn_number
    record.updated_at = state.updated_at
    record.state_json = state.model_dump(mode="json")
    session.add(record)


def list_battles(session: Session, status: str | None = None, limit: int = 20) -> list[BattleRecord]:
    stmt = select(BattleRecord)
    if status is not None:
        stmt = stmt.where(BattleRecord.status == status)
    stmt = stmt.order_by(BattleRecord.updated_at.desc()).limit(limit)  # type: ignore[union-attr]
    return list(session.exec(stmt).all())


# ---------------------------------------------------------------------------
# Storage handle
# ---------------------------------------------------------------------------

class Storage:
    """Owns the database engine and the per-battle write locks."""

    def __init__(self, engine: Engine | None = None):
        if engine is None:
            config.ensure_dirs()
            engine = create_engine(config.database_url, echo=False)
        self.engine = engine
        self._locks: dict[str, threading.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._locks_guard = threading.Lock()

    def init_db(self) -> None:
        """Create all tables."""
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def lock_battle(self, battle_id: str) -> Iterator[None]:
        """Serialize read-modify-write cycles on one battle.

        A battle's lock is dropped once nobody holds or waits for it.
        """
        with self._locks_guard:
            lock = self._locks.setdefault(battle_id, threading.Lock())
            self._lock_users[battle_id] = self._lock_users.get(battle_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                self._lock_users[battle_id] -= 1
                if self._lock_users[battle_id] == 0:
                    del self._lock_users[battle_id]
                    del self._locks[battle_id]
