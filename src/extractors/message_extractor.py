#!/usr/bin/env python3
"""
Message Extractor for AI Chat Export
Extracts the ordered messages of the conversation shown in the active tab.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import json
import logging
import time

from bs4 import BeautifulSoup

from models import ChatMessage
from browser.page_evaluator import PageBridge
from extractors.extraction_strategies import (
    DEFAULT_STRATEGIES, POSITION_ATTRIBUTE, QUERY_SELECTOR, RESPONSE_SELECTOR, Strategy,
)
from extractors.text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

DEFAULT_SCROLL_CONTAINERS = ('.conversation-container', 'main')

class MessageExtractor:
    """Materializes lazy content, snapshots the page and runs the strategy cascade"""

    def __init__(self, bridge: PageBridge, config: Dict[str, Any],
                 scroll_containers: Sequence[str] = DEFAULT_SCROLL_CONTAINERS,
                 position_selectors: Sequence[str] = (QUERY_SELECTOR, RESPONSE_SELECTOR),
                 strategies: Optional[List[Tuple[str, Strategy]]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.bridge = bridge
        self.sleep = sleep
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES)

        extraction_config = config.get('extraction', {})
        self.initial_settle = extraction_config.get('initial_settle', 2.0)
        self.scroll_interval = extraction_config.get('scroll_interval', 0.5)
        self.max_scroll_rounds = extraction_config.get('max_scroll_rounds', 60)
        self.settle_after_scroll = extraction_config.get('settle_after_scroll', 1.0)

        container_lookup = ' || '.join(
            f"document.querySelector({json.dumps(sel)})" for sel in scroll_containers
        )
        container_expr = f"({container_lookup} || document.scrollingElement)"

        self.scroll_down_script = (
            "(function() {"
            f" var el = {container_expr};"
            " if (!el) return '';"
            " el.scrollTop = el.scrollHeight;"
            " return String(el.scrollHeight);"
            "})()"
        )
        self.scroll_top_script = (
            "(function() {"
            f" var el = {container_expr};"
            " if (el) el.scrollTop = 0;"
            " return 'ok';"
            "})()"
        )
        self.snapshot_script = (
            "(function() {"
            f" var els = document.querySelectorAll({json.dumps(', '.join(position_selectors))});"
            " for (var i = 0; i < els.length; i++) {"
            f"  els[i].setAttribute({json.dumps(POSITION_ATTRIBUTE)},"
            " String(els[i].getBoundingClientRect().top + window.scrollY));"
            " }"
            " return document.documentElement.outerHTML;"
            "})()"
        )

    def extract(self, verbose: bool = False) -> List[ChatMessage]:
        """
        Extract messages from the currently loaded conversation page

        Args:
            verbose: Log strategy decisions at info level

        Returns:
            Ordered list of messages (earliest first), empty if nothing matched
        """
        log = logger.info if verbose else logger.debug

        self.sleep(self.initial_settle)
        self.load_all_content()
        self.sleep(self.settle_after_scroll)

        soup = self.snapshot()
        if soup is None:
            log("Page snapshot was empty, nothing to extract")
            return []

        return self.run_cascade(soup, verbose=verbose)

    def load_all_content(self) -> int:
        """
        Scroll the message container until its height stops growing

        Stops after two consecutive identical heights or after the configured
        number of rounds, then scrolls back to the top.

        Returns:
            Number of scroll steps taken
        """
        last_height = None
        steps = 0
        for _ in range(self.max_scroll_rounds):
            height = self.bridge.evaluate(self.scroll_down_script)
            steps += 1
            if height == last_height:
                break
            last_height = height
            self.sleep(self.scroll_interval)
        else:
            logger.debug(f"Content still growing after {self.max_scroll_rounds} scroll steps")

        self.bridge.evaluate(self.scroll_top_script)
        return steps

    def snapshot(self) -> Optional[BeautifulSoup]:
        """Capture the rendered page as parsed HTML, or None if unavailable"""
        html = self.bridge.evaluate(self.snapshot_script)
        if not html.strip():
            return None
        soup = BeautifulSoup(html, 'html.parser')
        return TextNormalizer.strip_invisible(soup)

    def run_cascade(self, soup: BeautifulSoup, verbose: bool = False) -> List[ChatMessage]:
        """Return the result of the first strategy that finds any message"""
        log = logger.info if verbose else logger.debug

        for name, strategy in self.strategies:
            try:
                messages = [msg for msg in strategy(soup) if msg.content.strip()]
            except Exception as e:
                logger.warning(f"Extraction strategy '{name}' failed: {e}")
                continue
            if messages:
                log(f"Strategy '{name}' matched {len(messages)} messages")
                return messages
            log(f"Strategy '{name}' found nothing")

        return []
