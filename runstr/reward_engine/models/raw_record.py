"""Raw relay event model."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class RawRecord:
    """
    Immutable, content-addressed event as received from a relay.

    Two records with the same id are the same logical event regardless of
    which relay served them.
    """
    id: str
    author_id: str
    created_at: int
    kind: int
    tags: Tuple[Tuple[str, ...], ...] = ()
    content: str = ""

    def first_tag(self, name: str) -> Optional[Tuple[str, ...]]:
        """Return the first tag whose key is `name`, or None."""
        for tag in self.tags:
            if tag and tag[0] == name:
                return tag
        return None

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> 'RawRecord':
        """
        Create a RawRecord from a relay event payload.

        Args:
            event: Event dictionary as sent in an ["EVENT", sub_id, event] frame

        Returns:
            RawRecord instance

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        if not isinstance(event, dict):
            raise ValueError(f"Event must be an object, got {type(event).__name__}")

        event_id = event.get('id')
        pubkey = event.get('pubkey')
        if not isinstance(event_id, str) or not event_id:
            raise ValueError("Event id missing")
        if not isinstance(pubkey, str) or not pubkey:
            raise ValueError(f"Event {event_id} has no pubkey")

        created_at = event.get('created_at')
        kind = event.get('kind')
        # bool is an int subclass but never a valid timestamp or kind
        if not isinstance(created_at, int) or isinstance(created_at, bool):
            raise ValueError(f"Event {event_id} has invalid created_at: {created_at!r}")
        if not isinstance(kind, int) or isinstance(kind, bool):
            raise ValueError(f"Event {event_id} has invalid kind: {kind!r}")

        raw_tags = event.get('tags') or []
        if not isinstance(raw_tags, list):
            raise ValueError(f"Event {event_id} has invalid tags")
        tags = tuple(
            tuple(str(item) for item in tag)
            for tag in raw_tags
            if isinstance(tag, list) and tag
        )

        content = event.get('content') or ""
        if not isinstance(content, str):
            raise ValueError(f"Event {event_id} has non-string content")

        return cls(
            id=event_id,
            author_id=pubkey,
            created_at=created_at,
            kind=kind,
            tags=tags,
            content=content
        )

    def to_event(self) -> Dict[str, Any]:
        """Convert back to relay event format for caching."""
        return {
            'id': self.id,
            'pubkey': self.author_id,
            'created_at': self.created_at,
            'kind': self.kind,
            'tags': [list(tag) for tag in self.tags],
            'content': self.content
        }
