"""
CFC Push Chatbot - Menu Models

Menu tree nodes and the welcome message, decoded from the documents the
management service writes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NodeKind(str, Enum):
    """What selecting a node does."""
    SUBMENU = "submenu"    # Shows a list of children
    INFO = "info"          # Shows terminal content
    LINK = "link"          # Shows terminal content with a URL
    ACTION = "action"      # Runs the payload


class ActionPayload(str, Enum):
    BACK_TO_MAIN = "BACK_TO_MAIN"
    END_CHAT = "END_CHAT"


def _text(value) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class MenuNode:
    """A node of the administrator-authored menu tree."""

    id: str
    title: str
    order: int = 0
    parent_id: Optional[str] = None
    description: str = ""
    content: str = ""
    url: str = ""
    kind: NodeKind = NodeKind.INFO
    payload: str = ""
    is_active: bool = True

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def has_terminal_payload(self) -> bool:
        return self.kind == NodeKind.ACTION and self.payload == ActionPayload.END_CHAT.value

    @property
    def returns_to_root(self) -> bool:
        return self.kind == NodeKind.ACTION and self.payload == ActionPayload.BACK_TO_MAIN.value

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "title": self.title,
            "order": self.order,
            "parentId": self.parent_id,
            "description": self.description,
            "content": self.content,
            "url": self.url,
            "type": self.kind.value,
            "payload": self.payload,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MenuNode":
        """
        Decode a `menuitems` document.

        Every optional field gets an explicit default here so the rest of the
        service never sees a missing key. ObjectId references are stringified.
        """
        parent = data.get("parentId")
        try:
            kind = NodeKind(data.get("type") or NodeKind.INFO.value)
        except ValueError:
            kind = NodeKind.INFO

        try:
            order = int(data.get("order") or 0)
        except (TypeError, ValueError):
            order = 0

        return cls(
            id=str(data["_id"]),
            title=_text(data.get("title")).strip(),
            order=max(order, 0),
            parent_id=str(parent) if parent else None,
            description=_text(data.get("description")),
            content=_text(data.get("content")),
            url=_text(data.get("url")),
            kind=kind,
            payload=_text(data.get("payload")),
            is_active=bool(data.get("isActive", True)),
        )


@dataclass
class WelcomeMessage:
    """Texts shown on greeting and above the main menu."""

    title: str
    message: str
    instructions: str = ""
    quick_tip: str = ""

    @classmethod
    def default(cls) -> "WelcomeMessage":
        return cls(
            title="🏛️ CFC PUSH",
            message="Shalom! Bem-vindo à Igreja da Família Cristã.",
            instructions="Para continuar, selecione uma das opções abaixo:",
            quick_tip="💡 Digite 'menu' para voltar ao menu principal",
        )

    @classmethod
    def from_dict(cls, data: dict) -> "WelcomeMessage":
        fallback = cls.default()
        return cls(
            title=data.get("title") or fallback.title,
            message=data.get("message") or fallback.message,
            instructions=data.get("instructions") or fallback.instructions,
            quick_tip=data.get("quickTip") or fallback.quick_tip,
        )
