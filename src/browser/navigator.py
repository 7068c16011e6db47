#!/usr/bin/env python3
"""
Navigator for AI Chat Export
Moves the active tab to a URL and waits for the page to settle.
"""

from typing import Any, Callable, Dict
import logging
import time

from browser.page_evaluator import PageBridge

logger = logging.getLogger(__name__)

class Navigator:
    """Navigates the active tab and polls until the document is ready"""

    def __init__(self, bridge: PageBridge, config: Dict[str, Any],
                 sleep: Callable[[float], None] = time.sleep):
        self.bridge = bridge
        self.sleep = sleep
        nav_config = config.get('navigation', {})
        self.initial_wait = nav_config.get('initial_wait', 3.0)
        self.poll_interval = nav_config.get('ready_poll_interval', 1.0)
        self.poll_attempts = nav_config.get('ready_poll_attempts', 10)
        self.settle = nav_config.get('settle', 2.0)

    def navigate_to(self, url: str) -> None:
        """
        Navigate to a URL and wait until the page reports it is ready

        Raises:
            BridgeError: If the browser could not be told to navigate
        """
        logger.debug(f"Navigating to {url}")
        self.bridge.open_url(url)
        self.sleep(self.initial_wait)

        for attempt in range(self.poll_attempts):
            if self.bridge.evaluate("document.readyState") == "complete":
                break
            logger.debug(f"Page not ready yet (check {attempt + 1}/{self.poll_attempts})")
            self.sleep(self.poll_interval)

        self.sleep(self.settle)

    def current_url(self) -> str:
        """URL of the active tab, or empty string if it cannot be read"""
        return self.bridge.evaluate("window.location.href")
