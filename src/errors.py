#!/usr/bin/env python3
"""
Exceptions for AI Chat Export
"""

from typing import List, Optional

class ChatExportError(Exception):
    """Base exception for export errors"""

class BridgeError(ChatExportError):
    """Raised when the browser cannot be driven (navigation, tab lookup)"""

class UnknownProviderError(ChatExportError, ValueError):
    """Raised when a provider name is not registered"""

    def __init__(self, name: str, available: List[str]):
        self.name = name
        self.available = list(available)
        super().__init__(f"Unknown provider \"{name}\". Available: {', '.join(self.available)}")

class NotSignedInError(ChatExportError):
    """Raised when the browser session is not signed in to the provider"""

    def __init__(self, display_name: str, message: Optional[str] = None):
        self.display_name = display_name
        super().__init__(message or f"Not signed in to {display_name}. Please sign in first.")
