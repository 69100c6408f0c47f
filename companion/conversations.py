"""
Saved chat sessions, one JSON file per conversation.
"""

import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import platformdirs

from .config.store import APP_NAME

DEFAULT_TITLE = "New conversation"


class ConversationError(Exception):
    """Raised when a saved conversation cannot be read, written or removed."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def default_storage_dir() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME)) / "cli-chats"


@dataclass
class SavedChat:
    project_path: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    title: str = DEFAULT_TITLE
    messages: List[Dict[str, str]] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def auto_title(self) -> None:
        """Derive the title from the first user message."""
        first = next((m for m in self.messages if m.get("role") == "user"), None)
        if first is None:
            return

        content = first["content"]
        dot = content.find(".")
        if dot != -1 and dot < 60:
            title = content[:dot]
        else:
            title = content[:40]

        self.title = title.strip()
        if len(self.title) < len(content):
            self.title += "..."

    def time_ago(self, now: Optional[datetime] = None) -> str:
        diff = (now or _now()) - self.updated_at
        if diff < timedelta(minutes=1):
            return "just now"
        if diff < timedelta(hours=1):
            return f"{int(diff.total_seconds() // 60)} min ago"
        if diff < timedelta(hours=24):
            return f"{int(diff.total_seconds() // 3600)} h ago"
        if diff < timedelta(days=7):
            return f"{diff.days} d ago"
        return self.updated_at.strftime("%d/%m/%Y")

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "SavedChat":
        data = dict(data)
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["updated_at"] = datetime.fromisoformat(data["updated_at"])
        return cls(**data)


class ChatStorage:
    """Directory of saved chats."""

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else default_storage_dir()

    def _path(self, chat_id: str) -> Path:
        if chat_id in ("", ".", "..") or any(c in chat_id for c in ("/", "\\", "\0")):
            raise ConversationError(f"Invalid chat id: {chat_id!r}")
        return self.directory / f"{chat_id}.json"

    def save(self, chat: SavedChat) -> Path:
        path = self._path(chat.id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(chat.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise ConversationError(f"Write error: {e}") from e
        return path

    def load(self, chat_id: str) -> SavedChat:
        try:
            data = json.loads(self._path(chat_id).read_text(encoding="utf-8"))
        except OSError as e:
            raise ConversationError(f"Read error: {e}") from e
        except ValueError as e:
            raise ConversationError(f"Parse error: {e}") from e
        try:
            return SavedChat.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ConversationError(f"Parse error: {e}") from e

    def list(self) -> List[SavedChat]:
        """All readable chats, most recently updated first. Broken files are skipped."""
        if not self.directory.is_dir():
            return []

        chats = []
        for path in self.directory.glob("*.json"):
            try:
                chats.append(self.load(path.stem))
            except ConversationError:
                continue

        chats.sort(key=lambda c: c.updated_at, reverse=True)
        return chats

    def list_for_project(self, project_path: str) -> List[SavedChat]:
        return [c for c in self.list() if c.project_path == project_path]

    def delete(self, chat_id: str) -> None:
        try:
            self._path(chat_id).unlink()
        except OSError as e:
            raise ConversationError(f"Delete error: {e}") from e
