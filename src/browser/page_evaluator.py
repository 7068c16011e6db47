#!/usr/bin/env python3
"""
Page Bridge for AI Chat Export
Runs JavaScript in the user's real, signed-in Chrome tab and drives navigation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import urlparse
import json
import logging
import subprocess

import requests
import websocket

from errors import BridgeError

logger = logging.getLogger(__name__)

class PageBridge(ABC):
    """Abstract bridge to the active browser tab"""

    def __init__(self, config: Dict[str, Any]):
        bridge_config = config.get('bridge', {})
        self.timeout = bridge_config.get('timeout', 30)
        self.max_output = int(bridge_config.get('max_output_mb', 50) * 1024 * 1024)

    @abstractmethod
    def evaluate(self, expression: str) -> str:
        """
        Evaluate JavaScript in the active tab

        Args:
            expression: JavaScript expression whose value is returned

        Returns:
            String result, or "" on timeout, transport or script failure
        """
        pass

    @abstractmethod
    def open_url(self, url: str) -> None:
        """
        Point the active tab at a URL

        Raises:
            BridgeError: If the browser could not be told to navigate
        """
        pass

    def close(self) -> None:
        """Release any connection held by the bridge"""

    def _within_limit(self, result: str) -> bool:
        if len(result) > self.max_output:
            logger.debug(f"Discarding oversized result ({len(result)} characters)")
            return False
        return True

class AppleScriptBridge(PageBridge):
    """Controls Google Chrome on macOS through osascript"""

    APPLICATION = "Google Chrome"

    @staticmethod
    def _escape(text: str) -> str:
        """Escape text for an AppleScript string literal"""
        return text.replace('\\', '\\\\').replace('"', '\\"')

    def _run(self, script: str, timeout: float) -> str:
        completed = subprocess.run(
            ['osascript', '-e', script],
            capture_output=True,
            text=True,
            encoding='utf-8',
            timeout=timeout,
            check=True,
        )
        return completed.stdout

    def evaluate(self, expression: str) -> str:
        script = (
            f'tell application "{self.APPLICATION}" to execute active tab of front window '
            f'javascript "{self._escape(expression)}"'
        )
        try:
            result = self._run(script, self.timeout).strip()
        except subprocess.TimeoutExpired:
            logger.debug(f"JS execution timed out after {self.timeout}s")
            return ""
        except subprocess.CalledProcessError as e:
            logger.debug(f"JS execution error: {(e.stderr or '').strip()[:200]}")
            return ""
        except OSError as e:
            logger.debug(f"Could not run osascript: {e}")
            return ""

        return result if self._within_limit(result) else ""

    def open_url(self, url: str) -> None:
        script = (
            f'tell application "{self.APPLICATION}" to set URL of active tab of front window '
            f'to "{self._escape(url)}"'
        )
        try:
            self._run(script, 10)
        except (subprocess.SubprocessError, OSError) as e:
            raise BridgeError(f"Failed to navigate to {url}: {e}") from e

class CDPBridge(PageBridge):
    """Controls a Chromium tab over the Chrome DevTools Protocol"""

    def __init__(self, config: Dict[str, Any], host_hint: Optional[str] = None):
        super().__init__(config)
        bridge_config = config.get('bridge', {})
        self.host = bridge_config.get('cdp_host', 'localhost')
        self.port = bridge_config.get('cdp_port', 9222)
        self.host_hint = host_hint
        self._ws = None
        self._next_id = 0

    def _debugger_url(self) -> str:
        """Find the websocket URL of the tab to drive"""
        try:
            resp = requests.get(f"http://{self.host}:{self.port}/json/list", timeout=10)
            resp.raise_for_status()
            tabs = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise BridgeError(f"Could not list Chrome tabs on {self.host}:{self.port}: {e}") from e

        pages = [tab for tab in tabs if tab.get('type') == 'page' and tab.get('webSocketDebuggerUrl')]
        if self.host_hint:
            for tab in pages:
                if self.host_hint in tab.get('url', ''):
                    return tab['webSocketDebuggerUrl']
        if pages:
            return pages[0]['webSocketDebuggerUrl']

        raise BridgeError(f"No debuggable Chrome tab found on {self.host}:{self.port}")

    def _connection(self):
        if self._ws is None:
            url = self._debugger_url()
            logger.debug(f"Connecting to {url}")
            try:
                self._ws = websocket.create_connection(url, timeout=self.timeout)
            except (websocket.WebSocketException, OSError) as e:
                raise BridgeError(f"Could not connect to {url}: {e}") from e
        return self._ws

    def _command(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a CDP command and wait for its response, skipping events"""
        ws = self._connection()
        self._next_id += 1
        command_id = self._next_id
        try:
            ws.send(json.dumps({"id": command_id, "method": method, "params": params or {}}))
            while True:
                message = json.loads(ws.recv())
                if message.get('id') == command_id:
                    break
        except (websocket.WebSocketException, OSError, ValueError) as e:
            # The socket is unusable after a failure; reconnect next time
            self.close()
            raise BridgeError(f"CDP command {method} failed: {e}") from e

        if 'error' in message:
            raise BridgeError(f"CDP command {method} failed: {message['error'].get('message')}")
        return message.get('result', {})

    @staticmethod
    def _stringify(value: Any) -> str:
        """Render a returned value the way the browser would print it"""
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return json.dumps(value)

    def evaluate(self, expression: str) -> str:
        try:
            result = self._command("Runtime.evaluate", {
                "expression": expression,
                "returnByValue": True,
                "timeout": int(self.timeout * 1000),
            })
        except BridgeError as e:
            logger.debug(f"JS execution error: {e}")
            return ""

        if 'exceptionDetails' in result:
            logger.debug(f"JS execution error: {result['exceptionDetails'].get('text', '')[:200]}")
            return ""

        text = self._stringify(result.get('result', {}).get('value')).strip()
        return text if self._within_limit(text) else ""

    def open_url(self, url: str) -> None:
        self._command("Page.navigate", {"url": url})

    def close(self) -> None:
        if self._ws is not None:
            try:
                self._ws.close()
            except (websocket.WebSocketException, OSError):
                pass
            self._ws = None

BRIDGE_CLASSES = {
    'applescript': AppleScriptBridge,
    'cdp': CDPBridge,
}

def create_bridge(config: Dict[str, Any], entry_url: Optional[str] = None) -> PageBridge:
    """
    Create the page bridge selected by config

    Args:
        config: Full configuration dictionary
        entry_url: Provider entry URL, used by CDP to pick the right tab

    Raises:
        ValueError: If the backend name is not known
    """
    backend = str(config.get('bridge', {}).get('backend', 'applescript')).lower()
    if backend not in BRIDGE_CLASSES:
        raise ValueError(f"Unsupported backend: {backend}. Supported backends: {', '.join(BRIDGE_CLASSES)}")

    logger.debug(f"Creating {backend} bridge")
    if backend == 'cdp':
        host_hint = urlparse(entry_url).hostname if entry_url else None
        return CDPBridge(config, host_hint=host_hint)
    return AppleScriptBridge(config)
