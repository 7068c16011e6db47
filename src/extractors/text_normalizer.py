#!/usr/bin/env python3
"""
Text Normalizer for AI Chat Export
Turns rendered page fragments into clean, visible message text.
"""

import re
import unicodedata
import logging
from typing import List, Tuple, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import CData, Declaration, Doctype, ProcessingInstruction

logger = logging.getLogger(__name__)

# Elements whose boundaries break lines in rendered text
BLOCK_TAGS = frozenset([
    'address', 'article', 'aside', 'blockquote', 'dd', 'details', 'div', 'dl', 'dt',
    'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5',
    'h6', 'header', 'hr', 'li', 'main', 'nav', 'ol', 'p', 'pre', 'section', 'summary',
    'table', 'tbody', 'td', 'tfoot', 'th', 'thead', 'tr', 'ul',
])

# Blocks separated from their neighbours by a blank line
PARAGRAPH_TAGS = frozenset(['p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6'])

# Whitespace inside these is rendered as written
PREFORMATTED_TAGS = frozenset(['pre', 'code', 'textarea'])

# Never rendered as text
INVISIBLE_TAGS = ('script', 'style', 'noscript', 'template', 'svg')

INVISIBLE_CHARS = re.compile('[\u200b\u200c\u200d\ufeff\x00]')
COLLAPSIBLE_SPACE = re.compile(r'[ \t\n\r\f\v\u00a0\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+')

_NON_TEXT_NODES = (Comment, CData, Declaration, Doctype, ProcessingInstruction)

# A collected piece is either a required line break count or (text, kind)
FLOW, BREAK, PRE = 'flow', 'break', 'pre'
Piece = Union[int, Tuple[str, str]]

EXCESS_NEWLINES = re.compile(r'\n{3,}')

class TextNormalizer:
    """Visible text flattening and filename helpers"""

    @staticmethod
    def strip_invisible(soup: BeautifulSoup) -> BeautifulSoup:
        """Remove elements that never contribute visible text"""
        for element in soup.find_all(INVISIBLE_TAGS):
            element.decompose()
        return soup

    @staticmethod
    def visible_text(element: Union[Tag, None]) -> str:
        """
        Flatten an element to the text a reader sees

        Follows the browser's innerText rules closely enough for chat
        content: block elements start new lines, paragraphs and headings
        are set apart by a blank line, <br> is a line break, whitespace in
        flowing text collapses to single spaces, and pre/code/textarea
        content is kept exactly as written. Hidden subtrees are skipped.
        """
        if element is None:
            return ""

        pieces: List[Piece] = []
        TextNormalizer._collect_text(element, pieces)
        return TextNormalizer._assemble(pieces)

    @staticmethod
    def _collect_text(node: Tag, pieces: List[Piece]) -> None:
        for child in node.children:
            if isinstance(child, _NON_TEXT_NODES):
                continue
            if isinstance(child, NavigableString):
                pieces.append((str(child), FLOW))
                continue
            if not isinstance(child, Tag) or TextNormalizer._is_hidden(child):
                continue
            if child.name == 'br':
                pieces.append(('\n', BREAK))
                continue

            breaks = 2 if child.name in PARAGRAPH_TAGS else 1 if child.name in BLOCK_TAGS else 0
            if breaks:
                pieces.append(breaks)
            if child.name in PREFORMATTED_TAGS:
                raw: List[str] = []
                TextNormalizer._collect_raw(child, raw)
                pieces.append((''.join(raw), PRE))
            else:
                TextNormalizer._collect_text(child, pieces)
            if breaks:
                pieces.append(breaks)

    @staticmethod
    def _collect_raw(node: Tag, raw: List[str]) -> None:
        for child in node.children:
            if isinstance(child, _NON_TEXT_NODES):
                continue
            if isinstance(child, NavigableString):
                raw.append(str(child))
            elif isinstance(child, Tag) and not TextNormalizer._is_hidden(child):
                if child.name == 'br':
                    raw.append('\n')
                else:
                    TextNormalizer._collect_raw(child, raw)

    @staticmethod
    def _assemble(pieces: List[Piece]) -> str:
        """Join collected pieces, merging adjacent line breaks like a browser"""
        out: List[List[str]] = []  # [text, kind]
        pending = 0

        for piece in pieces:
            if isinstance(piece, int):
                pending = max(pending, piece)
                continue

            text, kind = piece
            text = TextNormalizer.clean_characters(text)
            if kind == FLOW:
                text = COLLAPSIBLE_SPACE.sub(' ', text)
                at_line_start = not out or pending or (out[-1][1] != PRE and out[-1][0].endswith('\n'))
                if at_line_start:
                    text = text.lstrip(' ')
                if not text:
                    continue

            if out and out[-1][1] == FLOW and (pending or kind == BREAK):
                out[-1][0] = out[-1][0].rstrip(' ')
            if pending and out:
                last = out[-1][0]
                trailing = len(last) - len(last.rstrip('\n'))
                out.append(['\n' * max(pending - trailing, 0), BREAK])
            pending = 0
            out.append([text, kind])

        # Preformatted text is kept as written; elsewhere at most one blank line
        chunks: List[str] = []
        flowing: List[str] = []
        for text, kind in out:
            if kind == PRE:
                chunks.append(EXCESS_NEWLINES.sub('\n\n', ''.join(flowing)))
                flowing = []
                chunks.append(text)
            else:
                flowing.append(text)
        chunks.append(EXCESS_NEWLINES.sub('\n\n', ''.join(flowing)))

        return ''.join(chunks).strip('\n').rstrip()

    @staticmethod
    def _is_hidden(element: Tag) -> bool:
        if element.name in INVISIBLE_TAGS:
            return True
        if element.has_attr('hidden'):
            return True
        return str(element.get('aria-hidden', '')).lower() == 'true'

    @staticmethod
    def clean_characters(text: str) -> str:
        """NFC-normalize and drop zero-width characters"""
        if not text:
            return ""
        text = unicodedata.normalize('NFC', text)
        text = text.replace('\r\n', '\n').replace('\r', '\n')
        return INVISIBLE_CHARS.sub('', text)

    @staticmethod
    def first_line(text: str) -> str:
        """First non-empty line of a text, trimmed"""
        for line in (text or "").split('\n'):
            if line.strip():
                return line.strip()
        return ""

    @staticmethod
    def sanitize_filename(name: str, max_length: int = 200) -> str:
        """Make a chat title safe to use as a file name"""
        name = re.sub(r'[/\\?%*:|"<>]', '-', name or "")
        name = re.sub(r'\s+', ' ', name).strip()
        return name[:max_length].strip()
