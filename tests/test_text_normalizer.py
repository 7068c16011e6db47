#!/usr/bin/env python3
"""
Tests for TextNormalizer
"""

import unittest
import sys
import os

from bs4 import BeautifulSoup

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from extractors.text_normalizer import TextNormalizer

class TestTextNormalizer(unittest.TestCase):
    """Test cases for TextNormalizer"""

    def test_visible_text_breaks_blocks(self):
        html = (
            '<div><p>Hello   <b>world</b></p><p>Second<br>line</p>'
            '<span hidden>secret</span><span aria-hidden="true">icon</span>'
            '<!-- note --><script>var a = 1;</script></div>'
        )
        element = BeautifulSoup(html, 'html.parser').div
        self.assertEqual(TextNormalizer.visible_text(element), "Hello world\n\nSecond\nline")

    def test_paragraphs_keep_blank_line(self):
        html = '<div>\n  <p>Para one</p>\n  <p>Para two</p>\n  <h2>Heading</h2><div>Line</div>\n</div>'
        element = BeautifulSoup(html, 'html.parser').div
        self.assertEqual(TextNormalizer.visible_text(element),
                         "Para one\n\nPara two\n\nHeading\n\nLine")

    def test_preformatted_text_kept_as_written(self):
        html = (
            '<model-response><p>Run this:</p>'
            '<pre><code>def f():\n    return 1\n\n\n\nprint(f())</code></pre>'
            '<p>Inline <code>a  =  b</code> works.</p>'
            '<textarea>  keep\tme  </textarea></model-response>'
        )
        element = BeautifulSoup(html, 'html.parser').find('model-response')
        self.assertEqual(TextNormalizer.visible_text(element), (
            "Run this:\n\n"
            "def f():\n    return 1\n\n\n\nprint(f())\n\n"
            "Inline a  =  b works.\n\n"
            "  keep\tme"
        ))

    def test_excess_line_breaks_collapse(self):
        html = '<div>one<br><br><br><br>two<p></p><p></p><p>three</p></div>'
        element = BeautifulSoup(html, 'html.parser').div
        self.assertEqual(TextNormalizer.visible_text(element), "one\n\ntwo\n\nthree")

    def test_visible_text_of_nothing(self):
        self.assertEqual(TextNormalizer.visible_text(None), "")

    def test_strip_invisible(self):
        soup = BeautifulSoup('<body><style>p {}</style><p>kept</p><noscript>x</noscript></body>', 'html.parser')
        TextNormalizer.strip_invisible(soup)
        self.assertEqual(str(soup), '<body><p>kept</p></body>')

    def test_flowing_whitespace(self):
        element = BeautifulSoup('<div>  a\u00a0 b\u200b \r\n\tc\u2028 d </div>', 'html.parser').div
        self.assertEqual(TextNormalizer.visible_text(element), "a b c d")

    def test_clean_characters(self):
        self.assertEqual(TextNormalizer.clean_characters("e\u0301\u200b\r\nx\ufeff"), "\u00e9\nx")
        self.assertEqual(TextNormalizer.clean_characters(""), "")

    def test_first_line(self):
        self.assertEqual(TextNormalizer.first_line("\n  Title \nsubtitle"), "Title")
        self.assertEqual(TextNormalizer.first_line(""), "")

    def test_sanitize_filename(self):
        cases = {
            'What is a/b? "quotes" <tags>': 'What is a-b- -quotes- -tags-',
            '  spaced \n\t out  ': 'spaced out',
            'C:\\temp|x*y%z': 'C--temp-x-y-z',
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(TextNormalizer.sanitize_filename(raw), expected)
        self.assertEqual(len(TextNormalizer.sanitize_filename("x" * 500)), 200)
        self.assertEqual(TextNormalizer.sanitize_filename("abcdef", 3), "abc")

if __name__ == '__main__':
    unittest.main()
