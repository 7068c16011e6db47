#!/usr/bin/env python3
"""
Gemini Provider for AI Chat Export
Discovers and extracts conversations on gemini.google.com.
"""

from typing import Any, Callable, Dict, List
import logging
import time

from models import ChatMessage, ConversationReference
from browser.page_evaluator import PageBridge
from providers.base_provider import BaseProvider
from extractors.chat_discovery import ChatDiscovery
from extractors.message_extractor import MessageExtractor

logger = logging.getLogger(__name__)

class GeminiProvider(BaseProvider):
    """Provider for Google Gemini"""

    name = "gemini"
    display_name = "Google Gemini"
    short_name = "Gemini"
    entry_url = "https://gemini.google.com/app"

    SIGN_IN_PROBE = "document.querySelector('a[aria-label=\"Sign in\"]') === null ? 'yes' : 'no'"

    CHAT_LINK_SELECTOR = 'a[href*="/app/"]'
    MENU_BUTTON_SELECTOR = 'button[aria-label="Main menu"]'

    # The sidebar's scrollable element has moved between releases
    SIDEBAR_CANDIDATES = (
        'side-navigation-content',
        'bard-sidenav',
        '[role="navigation"]',
        '.side-nav-container',
        'mat-sidenav',
    )
    SIDEBAR_ROOT = 'bard-sidenav-container'

    EXCLUDED_LINK_FRAGMENTS = (
        '/download',
        '/settings',
        '/extensions',
        'accounts.google.com',
    )

    def __init__(self, bridge: PageBridge, config: Dict[str, Any],
                 sleep: Callable[[float], None] = time.sleep):
        super().__init__(bridge, config, sleep)
        self.discovery = ChatDiscovery(
            bridge, config,
            link_selector=self.CHAT_LINK_SELECTOR,
            root_path='/app',
            menu_button_selector=self.MENU_BUTTON_SELECTOR,
            scroll_candidates=self.SIDEBAR_CANDIDATES,
            fallback_root=self.SIDEBAR_ROOT,
            excluded_fragments=self.EXCLUDED_LINK_FRAGMENTS,
            sleep=sleep,
        )
        self.extractor = MessageExtractor(bridge, config, sleep=sleep)

    def is_signed_in(self) -> bool:
        return self.bridge.evaluate(self.SIGN_IN_PROBE) == "yes"

    def discover_chats(self, verbose: bool = False) -> List[ConversationReference]:
        return self.discovery.discover(verbose=verbose)

    def extract_messages(self, verbose: bool = False) -> List[ChatMessage]:
        return self.extractor.extract(verbose=verbose)
