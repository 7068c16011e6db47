#!/usr/bin/env python3
"""
Base Provider for AI Chat Export
Abstract base class for all chat site providers.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List
from urllib.parse import urlparse
import logging
import time

from models import ChatMessage, ConversationReference
from browser.page_evaluator import PageBridge

logger = logging.getLogger(__name__)

class BaseProvider(ABC):
    """Everything the export loop needs to know about one chat site"""

    name: str = ""
    display_name: str = ""
    short_name: str = ""
    entry_url: str = ""

    def __init__(self, bridge: PageBridge, config: Dict[str, Any],
                 sleep: Callable[[float], None] = time.sleep):
        self.bridge = bridge
        self.config = config
        self.sleep = sleep

    @abstractmethod
    def is_signed_in(self) -> bool:
        """Whether the current page belongs to a signed-in session"""
        pass

    @abstractmethod
    def discover_chats(self, verbose: bool = False) -> List[ConversationReference]:
        """
        Enumerate the conversations available to the current session

        Args:
            verbose: Report progress and parse failures

        Returns:
            Unique conversation references; empty on failure
        """
        pass

    @abstractmethod
    def extract_messages(self, verbose: bool = False) -> List[ChatMessage]:
        """
        Extract the conversation shown in the active tab

        Returns:
            Messages in chronological order; empty when nothing matched
        """
        pass

    def matches_url(self, url: str) -> bool:
        """Whether a URL is on this provider's site"""
        host = urlparse(self.entry_url).hostname
        return bool(url and host and urlparse(url).hostname == host)
