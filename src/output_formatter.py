#!/usr/bin/env python3
"""
Output Formatter for AI Chat Export
Formats conversations as Markdown or JSON documents.
"""

from typing import Dict, Any, Optional
import json
import logging

from models import Conversation, ChatMessage, MessageRole

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS = {
    'markdown': 'md',
    'json': 'json',
}

class ChatExportFormatter:
    """Formats exported conversations"""

    def __init__(self, config: Dict[str, Any], assistant_label: str = "Assistant"):
        self.config = config
        labels = {
            MessageRole.USER.value: 'User',
            MessageRole.ASSISTANT.value: assistant_label,
            MessageRole.UNKNOWN.value: 'Unknown',
        }
        labels.update(config.get('output', {}).get('role_labels', {}) or {})
        self.role_labels = labels

    def role_label(self, role: MessageRole) -> str:
        """Heading used for a message role"""
        return self.role_labels.get(role.value, role.value.title())

    def format_markdown(self, conversation: Conversation) -> str:
        """
        Format a conversation as Markdown

        Args:
            conversation: Conversation object to format

        Returns:
            Markdown string with a title heading and one section per message
        """
        logger.debug(f"Formatting {len(conversation.messages)} messages as Markdown")

        parts = [f"# {conversation.title or ''}\n\n"]
        for message in conversation.messages:
            section = self._format_markdown_message(message)
            if section:
                parts.append(section)
        return "".join(parts)

    def _format_markdown_message(self, message: ChatMessage) -> Optional[str]:
        if not message.content.strip():
            return None
        return f"## {self.role_label(message.role)}\n\n{message.content}\n\n---\n\n"

    def format_json(self, conversation: Conversation) -> str:
        """
        Format a conversation as a JSON document

        Returns:
            Pretty-printed JSON with title, url, exportedAt and messages
        """
        logger.debug(f"Formatting {len(conversation.messages)} messages as JSON")

        document = {
            'title': conversation.title,
            'url': conversation.url,
            'exportedAt': conversation.extracted_at.astimezone().isoformat(),
            'messages': [
                message.to_dict() for message in conversation.messages
                if message.content.strip()
            ],
        }
        return json.dumps(document, indent=2, ensure_ascii=False)

    def format(self, conversation: Conversation, output_format: str) -> str:
        """
        Format a conversation in the named format

        Raises:
            ValueError: If the format is not supported
        """
        if output_format == 'markdown':
            return self.format_markdown(conversation)
        if output_format == 'json':
            return self.format_json(conversation)
        raise ValueError(f"Unsupported format: {output_format}. "
                         f"Supported formats: {', '.join(FORMAT_EXTENSIONS)}")
