import hashlib
import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from cheer_chat.config.settings import settings
from cheer_chat.domain.conversation import ConversationTurn
from cheer_chat.domain.exceptions import PersistenceError, StoreError


class JsonConversationStore:
    """按用户分文件的 JSON Lines 存储。

    文件名取 user_id 的 SHA-256 摘要，客户端传来的 id 不会成为路径的一部分。
    """

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._turn_root = self._root / "turns"
        self._turn_root.mkdir(parents=True, exist_ok=True)

    def find_recent(self, user_id: str, limit: int) -> List[ConversationTurn]:
        if limit <= 0:
            return []
        try:
            turns = self._read_turns(user_id)
        except OSError as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))
        # 稳定排序：同一时间戳下文件中靠后的记录更新
        indexed = sorted(enumerate(turns), key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [t for _, t in indexed[:limit]]

    def append(self, user_id: str, message: str, turn_id: Optional[str] = None) -> ConversationTurn:
        path = self._path_for(user_id)
        try:
            if turn_id:
                for existing in self._read_turns(user_id):
                    if existing.id == turn_id:
                        return existing
            turn = ConversationTurn(
                id=turn_id or f"t-{uuid4().hex}",
                user_id=user_id,
                message=message,
                created_at=datetime.now(timezone.utc),
            )
            payload = asdict(turn)
            payload["created_at"] = turn.created_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
            line = json.dumps(payload, ensure_ascii=False)
            with path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise PersistenceError(code="STORE_WRITE_ERROR", message=str(e))
        return turn

    def _path_for(self, user_id: str) -> Path:
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self._turn_root / f"{digest}.jsonl"

    def _read_turns(self, user_id: str) -> List[ConversationTurn]:
        path = self._path_for(user_id)
        items: List[ConversationTurn] = []
        if not path.exists():
            return items
        for line in path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                items.append(self._to_turn(json.loads(line)))
            except (ValueError, KeyError):
                # 半行写入（进程被中断）时跳过
                continue
        return items

    @staticmethod
    def _to_turn(data: Dict[str, Any]) -> ConversationTurn:
        return ConversationTurn(
            id=data["id"],
            user_id=data["user_id"],
            message=data.get("message") or "",
            created_at=datetime.fromisoformat(str(data["created_at"]).replace("Z", "+00:00")),
        )
