#!/usr/bin/env python3
"""
Extraction Strategies for AI Chat Export

Each strategy looks at a parsed page snapshot and returns the messages it
recognizes, or an empty list. Strategies are ordered from the most specific
markup signal to the least specific one; the extractor stops at the first
strategy that finds anything.
"""

import re
import logging
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from models import ChatMessage, MessageRole
from extractors.text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

Strategy = Callable[[BeautifulSoup], List[ChatMessage]]

# Attribute stamped by the page snapshot script with each element's vertical offset
POSITION_ATTRIBUTE = 'data-export-top'

TURN_SELECTOR = 'user-query, model-response, .conversation-turn, [class*="turn-container"]'
HUMAN_TURN_TAG = 'user-query'
HUMAN_TURN_CLASS = 'user-turn'
HUMAN_MARKER_SELECTOR = '[class*="user"]'

QUERY_SELECTOR = '.query-text, [class*="query-content"], [class*="user-query"], user-query'
RESPONSE_SELECTOR = (
    '.response-container, .model-response-text, [class*="model-response"], '
    'model-response, message-content'
)

ROLE_ATTRIBUTE = 'data-message-author-role'

CONTAINER_SELECTORS = ('.conversation-container', '[class*="conversation"]', 'main')
HUMAN_WORDS = re.compile(r'user|query|human|prompt|request', re.IGNORECASE)

def extract_turn_elements(soup: BeautifulSoup) -> List[ChatMessage]:
    """Strategy 1: one element per turn (custom elements or turn classes)"""
    messages = []
    for turn in soup.select(TURN_SELECTOR):
        text = TextNormalizer.visible_text(turn)
        if len(text) <= 1:
            continue
        is_user = (
            turn.name == HUMAN_TURN_TAG
            or HUMAN_TURN_CLASS in turn.get('class', [])
            or turn.select_one(HUMAN_MARKER_SELECTOR) is not None
        )
        messages.append(ChatMessage(MessageRole.USER if is_user else MessageRole.ASSISTANT, text))
    return messages

def _position(element: Tag) -> Optional[float]:
    value = element.get(POSITION_ATTRIBUTE)
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None

def extract_paired_regions(soup: BeautifulSoup) -> List[ChatMessage]:
    """
    Strategy 2: queries and responses live in separate subtrees

    Turn order is rebuilt from the vertical position the snapshot script
    recorded on each element. When any element lacks a position, document
    order is used instead.
    """
    tagged: List[Tuple[MessageRole, Tag]] = []
    tagged.extend((MessageRole.USER, el) for el in soup.select(QUERY_SELECTOR))
    tagged.extend((MessageRole.ASSISTANT, el) for el in soup.select(RESPONSE_SELECTOR))
    if not tagged:
        return []

    positions = [_position(el) for _, el in tagged]
    if all(pos is not None for pos in positions):
        order = positions
    else:
        document_order: Dict[int, int] = {id(el): i for i, el in enumerate(soup.find_all(True))}
        order = [document_order.get(id(el), 0) for _, el in tagged]

    # sorted() is stable, so ties keep queries ahead of responses
    ranked = sorted(zip(order, range(len(tagged))), key=lambda pair: pair[0])

    messages = []
    for _, index in ranked:
        role, element = tagged[index]
        text = TextNormalizer.visible_text(element)
        if len(text) > 1:
            messages.append(ChatMessage(role, text))
    return messages

def extract_role_attributes(soup: BeautifulSoup) -> List[ChatMessage]:
    """Strategy 3: elements with an explicit author-role data attribute"""
    messages = []
    for element in soup.select(f'[{ROLE_ATTRIBUTE}]'):
        text = TextNormalizer.visible_text(element)
        if not text:
            continue
        role = MessageRole.USER if element.get(ROLE_ATTRIBUTE) == 'user' else MessageRole.ASSISTANT
        messages.append(ChatMessage(role, text))
    return messages

def find_conversation_container(soup: BeautifulSoup) -> Optional[Tag]:
    """Best guess at the element holding the whole conversation"""
    for selector in CONTAINER_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            return container
    return None

def extract_structural_fallback(soup: BeautifulSoup) -> List[ChatMessage]:
    """
    Strategy 4: classify the container's direct children by name

    If no child has usable text, the whole container is returned as a single
    message with an unknown role.
    """
    container = find_conversation_container(soup)
    if container is None:
        return []

    messages = []
    for child in container.find_all(True, recursive=False):
        text = TextNormalizer.visible_text(child)
        if len(text) < 2:
            continue
        descriptor = f"{' '.join(child.get('class', []))} {child.name}"
        role = MessageRole.USER if HUMAN_WORDS.search(descriptor) else MessageRole.ASSISTANT
        messages.append(ChatMessage(role, text))
    if messages:
        return messages

    text = TextNormalizer.visible_text(container)
    if text:
        logger.debug("No turn structure found, returning raw container text")
        return [ChatMessage(MessageRole.UNKNOWN, text)]
    return []

DEFAULT_STRATEGIES: List[Tuple[str, Strategy]] = [
    ('turn elements', extract_turn_elements),
    ('paired query/response regions', extract_paired_regions),
    ('role attributes', extract_role_attributes),
    ('structural fallback', extract_structural_fallback),
]
