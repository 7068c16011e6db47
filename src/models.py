#!/usr/bin/env python3
"""
Data models for AI Chat Export
"""

from dataclasses import dataclass, field
from typing import List, Optional
from datetime import datetime
from enum import Enum

class MessageRole(Enum):
    """Message role enumeration"""
    USER = "user"
    ASSISTANT = "assistant"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str) -> "MessageRole":
        """Parse a role name, treating 'human' as the user"""
        value = (value or "").strip().lower()
        if value == "human":
            return cls.USER
        return cls(value)

@dataclass(frozen=True)
class ConversationReference:
    """A conversation found in the provider's chat list"""
    href: str
    label: str = ""

@dataclass
class ChatMessage:
    """Represents a single chat message"""
    role: MessageRole
    content: str
    sequence: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.role, str):
            self.role = MessageRole.from_string(self.role)

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}

@dataclass
class Conversation:
    """Represents a complete exported conversation"""
    messages: List[ChatMessage]
    provider: str
    title: Optional[str] = None
    url: Optional[str] = None
    extracted_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        # Empty turns are never exported
        self.messages = [msg for msg in self.messages if msg.content and msg.content.strip()]
        for i, message in enumerate(self.messages, 1):
            message.sequence = i

    def get_user_messages(self) -> List[ChatMessage]:
        """Get all user messages"""
        return [msg for msg in self.messages if msg.role == MessageRole.USER]

    def get_assistant_messages(self) -> List[ChatMessage]:
        """Get all assistant messages"""
        return [msg for msg in self.messages if msg.role == MessageRole.ASSISTANT]

    def get_message_count(self) -> int:
        """Get total message count"""
        return len(self.messages)
