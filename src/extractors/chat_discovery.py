#!/usr/bin/env python3
"""
Chat Discovery for AI Chat Export
Collects every conversation link from a lazily rendered, virtualized sidebar.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlparse
import json
import logging
import time

from models import ConversationReference
from browser.page_evaluator import PageBridge
from extractors.text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

class ChatDiscovery:
    """Scrolls the chat list until it stops growing and reads the links"""

    def __init__(self, bridge: PageBridge, config: Dict[str, Any],
                 link_selector: str,
                 root_path: str,
                 menu_button_selector: Optional[str] = None,
                 scroll_candidates: Sequence[str] = (),
                 fallback_root: Optional[str] = None,
                 excluded_fragments: Sequence[str] = (),
                 sleep: Callable[[float], None] = time.sleep):
        self.bridge = bridge
        self.sleep = sleep
        self.root_path = root_path.rstrip('/')
        self.excluded_fragments = tuple(excluded_fragments)

        discovery_config = config.get('discovery', {})
        self.sidebar_settle = discovery_config.get('sidebar_settle', 2.0)
        self.max_rounds = discovery_config.get('max_rounds', 100)
        self.stable_rounds = discovery_config.get('stable_rounds', 5)
        self.poll_interval = discovery_config.get('poll_interval', 1.5)

        selector = json.dumps(link_selector)
        self.open_sidebar_script = None
        if menu_button_selector:
            self.open_sidebar_script = (
                "(function() {"
                f" var btn = document.querySelector({json.dumps(menu_button_selector)});"
                " if (btn) { btn.click(); return 'clicked'; }"
                " return '';"
                "})()"
            )
        self.count_script = f"String(document.querySelectorAll({selector}).length)"
        self.scroll_script = self._build_scroll_script(scroll_candidates, fallback_root)
        self.read_links_script = (
            "JSON.stringify("
            f"Array.from(document.querySelectorAll({selector}))"
            ".map(function(a) { return {href: a.href, text: a.textContent || ''}; })"
            ")"
        )

    @staticmethod
    def _build_scroll_script(candidates: Sequence[str], fallback_root: Optional[str]) -> str:
        """Script that scrolls the first scrollable list container to the bottom"""
        fallback = ""
        if fallback_root:
            fallback = (
                f" var root = document.querySelector({json.dumps(fallback_root)});"
                " if (root) {"
                "  var all = root.querySelectorAll('*');"
                "  for (var j = 0; j < all.length; j++) {"
                "   if (all[j].scrollHeight > all[j].clientHeight + 10) {"
                "    all[j].scrollTop = all[j].scrollHeight; return 'fallback';"
                "   }"
                "  }"
                " }"
            )
        return (
            "(function() {"
            f" var selectors = {json.dumps(list(candidates))};"
            " for (var i = 0; i < selectors.length; i++) {"
            "  var el = document.querySelector(selectors[i]);"
            "  if (el && el.scrollHeight > el.clientHeight) {"
            "   el.scrollTop = el.scrollHeight; return selectors[i];"
            "  }"
            " }"
            f"{fallback}"
            " return '';"
            "})()"
        )

    def discover(self, verbose: bool = False) -> List[ConversationReference]:
        """
        Discover all conversations in the chat list

        Args:
            verbose: Report scrolling progress and parse problems at info/warning level

        Returns:
            Unique conversation references in first-seen order
        """
        log = logger.info if verbose else logger.debug

        self.open_sidebar()
        self.load_all_links(verbose=verbose)

        raw = self.bridge.evaluate(self.read_links_script)
        try:
            links = json.loads(raw)
            if not isinstance(links, list):
                raise ValueError(f"expected a list of links, got {type(links).__name__}")
        except ValueError as e:
            if verbose:
                logger.warning(f"Failed to parse chat links from sidebar: {e}")
            else:
                logger.debug(f"Failed to parse chat links from sidebar: {e}")
            return []

        references = self.filter_links(links)
        log(f"Found {len(references)} conversations")
        return references

    def open_sidebar(self) -> None:
        """Open the navigation surface and wait for its animation"""
        if self.open_sidebar_script is None:
            return
        self.bridge.evaluate(self.open_sidebar_script)
        self.sleep(self.sidebar_settle)

    def load_all_links(self, verbose: bool = False) -> int:
        """
        Scroll the chat list until the link count stays the same

        The loop ends once the count is unchanged for `stable_rounds`
        consecutive rounds, or after `max_rounds`.

        Returns:
            Number of rounds taken
        """
        log = logger.info if verbose else logger.debug
        log("Scrolling sidebar to load all conversations...")

        stable = 0
        rounds = 0
        count_after = ""
        for rounds in range(1, self.max_rounds + 1):
            count_before = self.bridge.evaluate(self.count_script)
            self.bridge.evaluate(self.scroll_script)
            self.sleep(self.poll_interval)
            count_after = self.bridge.evaluate(self.count_script)

            if count_after == count_before:
                stable += 1
                if stable >= self.stable_rounds:
                    log(f"Sidebar fully loaded: {count_after or 0} links found")
                    break
            else:
                stable = 0
                log(f"Scrolling... {count_after or 0} links so far")
        else:
            logger.warning(f"Chat list still changing after {self.max_rounds} rounds, "
                           f"continuing with {count_after or 0} links")

        return rounds

    def is_conversation_link(self, href: str) -> bool:
        """False for the application root and known non-conversation pages"""
        if not href:
            return False
        if urlparse(href).path.rstrip('/') == self.root_path:
            return False
        return not any(fragment in href for fragment in self.excluded_fragments)

    def filter_links(self, links: Iterable[Any]) -> List[ConversationReference]:
        """Drop non-conversation links and duplicates, keeping first-seen order"""
        seen = set()
        references = []
        for link in links:
            if not isinstance(link, dict):
                continue
            href = str(link.get('href') or '')
            if not self.is_conversation_link(href) or href in seen:
                continue
            seen.add(href)
            label = TextNormalizer.first_line(str(link.get('text') or ''))
            references.append(ConversationReference(href=href, label=label))
        return references
