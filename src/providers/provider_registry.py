#!/usr/bin/env python3
"""
Provider Registry for AI Chat Export
Creates provider instances by name.
"""

from typing import Any, Callable, Dict, List, Optional
import logging
import time

from errors import UnknownProviderError
from browser.page_evaluator import PageBridge
from providers.base_provider import BaseProvider
from providers.gemini_provider import GeminiProvider

logger = logging.getLogger(__name__)

class ProviderRegistry:
    """Registry of the chat sites the exporter can drive"""

    PROVIDER_CLASSES = {
        'gemini': GeminiProvider,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    def get_provider_class(self, name: str):
        """
        Look up a provider class without creating it

        Raises:
            UnknownProviderError: If the provider is not registered
        """
        key = (name or "").lower()
        if key not in self.PROVIDER_CLASSES:
            raise UnknownProviderError(name, self.list_providers())
        return self.PROVIDER_CLASSES[key]

    def get_provider(self, name: str, bridge: PageBridge,
                     sleep: Callable[[float], None] = time.sleep) -> BaseProvider:
        """
        Create a provider instance bound to a page bridge

        Args:
            name: Provider name
            bridge: Bridge to the browser tab the provider will drive

        Returns:
            Provider instance

        Raises:
            UnknownProviderError: If the provider is not registered
        """
        provider_class = self.get_provider_class(name)
        logger.debug(f"Creating {name.lower()} provider")
        return provider_class(bridge, self.config, sleep=sleep)

    def list_providers(self) -> List[str]:
        """Get list of registered provider names"""
        return list(self.PROVIDER_CLASSES.keys())

    def is_supported_provider(self, name: str) -> bool:
        """Check if a provider is registered"""
        return (name or "").lower() in self.PROVIDER_CLASSES
