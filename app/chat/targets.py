"""
Typed message and call targets.

Messages and calls belong to exactly one direct conversation or one group.
The database stores that as two nullable foreign keys guarded by a check
constraint; code passes a Target instead, so "both set" cannot be expressed.

Usage:
    target = target_from_ids(conversation_id=request.data.get("conversation_id"))
    Message.objects.filter(**target.filter_kwargs())

    match target:
        case ConversationTarget(id=conversation_id):
            ...
        case GroupTarget(id=group_id):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union
from uuid import UUID


@dataclass(frozen=True)
class ConversationTarget:
    """A direct conversation."""

    id: UUID

    kind = "conversation"

    def filter_kwargs(self, prefix: str = "") -> dict[str, Any]:
        return {f"{prefix}conversation_id": self.id}

    def model_kwargs(self) -> dict[str, Any]:
        return {"conversation_id": self.id, "group_id": None}


@dataclass(frozen=True)
class GroupTarget:
    """A group chat."""

    id: UUID

    kind = "group"

    def filter_kwargs(self, prefix: str = "") -> dict[str, Any]:
        return {f"{prefix}group_id": self.id}

    def model_kwargs(self) -> dict[str, Any]:
        return {"conversation_id": None, "group_id": self.id}


Target = Union[ConversationTarget, GroupTarget]


def target_from_ids(conversation_id=None, group_id=None) -> Target | None:
    """
    Build a Target from request ids.

    Returns:
        The target when exactly one valid id is given, None otherwise
    """
    if bool(conversation_id) == bool(group_id):
        return None
    try:
        if conversation_id:
            return ConversationTarget(_as_uuid(conversation_id))
        return GroupTarget(_as_uuid(group_id))
    except ValueError:
        return None


def _as_uuid(value) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(str(value))
