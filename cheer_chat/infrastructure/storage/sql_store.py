"""基于 SQLAlchemy 的会话存储。

表结构只有一张 conversation_turns：自增 seq 作为同一时间戳下的排序兜底，
turn_id 唯一，用于让重复写入幂等。
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from cheer_chat.config.settings import settings
from cheer_chat.domain.conversation import ConversationTurn
from cheer_chat.domain.exceptions import PersistenceError, StoreError


class Base(DeclarativeBase):
    pass


class TurnRow(Base):
    __tablename__ = "conversation_turns"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    turn_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)


def _utc(dt: datetime) -> datetime:
    # SQLite 读回来的时间不带时区
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class SqlConversationStore:
    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            url = url or settings.database_url
            connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
            engine = create_engine(url, connect_args=connect_args)
        self._engine = engine
        Base.metadata.create_all(bind=self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def find_recent(self, user_id: str, limit: int) -> List[ConversationTurn]:
        if limit <= 0:
            return []
        stmt = (
            select(TurnRow)
            .where(TurnRow.user_id == user_id)
            .order_by(TurnRow.created_at.desc(), TurnRow.seq.desc())
            .limit(limit)
        )
        try:
            with self._session_factory() as db:
                rows = db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))
        return [self._to_turn(r) for r in rows]

    def append(self, user_id: str, message: str, turn_id: Optional[str] = None) -> ConversationTurn:
        try:
            with self._session_factory() as db:
                if turn_id:
                    existing = self._get_by_turn_id(db, turn_id)
                    if existing is not None:
                        return self._to_turn(existing)
                row = TurnRow(
                    turn_id=turn_id or f"t-{uuid4().hex}",
                    user_id=user_id,
                    message=message,
                    created_at=datetime.now(timezone.utc),
                )
                db.add(row)
                try:
                    db.commit()
                except IntegrityError:
                    # 并发请求抢先写入了同一个 turn_id
                    db.rollback()
                    existing = self._get_by_turn_id(db, row.turn_id)
                    if existing is None:
                        raise
                    return self._to_turn(existing)
                return self._to_turn(row)
        except SQLAlchemyError as e:
            raise PersistenceError(code="STORE_WRITE_ERROR", message=str(e))

    def close(self) -> None:
        self._engine.dispose()

    @staticmethod
    def _get_by_turn_id(db: Session, turn_id: str) -> Optional[TurnRow]:
        return db.execute(select(TurnRow).where(TurnRow.turn_id == turn_id)).scalar_one_or_none()

    @staticmethod
    def _to_turn(row: TurnRow) -> ConversationTurn:
        return ConversationTurn(
            id=row.turn_id,
            user_id=row.user_id,
            message=row.message,
            created_at=_utc(row.created_at),
        )
