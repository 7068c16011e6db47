#!/usr/bin/env python3
"""
Tests for Navigator
"""

import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from browser.navigator import Navigator
from page_fakes import ScriptedBridge, SleepRecorder

class TestNavigator(unittest.TestCase):
    """Test cases for Navigator"""

    def setUp(self):
        self.bridge = ScriptedBridge()
        self.sleep = SleepRecorder()
        self.navigator = Navigator(self.bridge, {}, sleep=self.sleep)

    def test_waits_until_ready(self):
        states = iter(["loading", "interactive", "complete"])
        self.bridge.responses["document.readyState"] = lambda: next(states)

        self.navigator.navigate_to("https://gemini.google.com/app/abc")

        self.assertEqual(self.bridge.opened, ["https://gemini.google.com/app/abc"])
        self.assertEqual(self.sleep.delays, [3.0, 1.0, 1.0, 2.0])

    def test_gives_up_after_poll_limit(self):
        """Test a page that never finishes loading does not block forever"""
        navigator = Navigator(self.bridge, {'navigation': {
            'initial_wait': 0.5, 'ready_poll_interval': 0.1, 'ready_poll_attempts': 4, 'settle': 0,
        }}, sleep=self.sleep)

        navigator.navigate_to("https://gemini.google.com/app")

        self.assertEqual(self.bridge.count("document.readyState"), 4)
        self.assertEqual(self.sleep.delays, [0.5, 0.1, 0.1, 0.1, 0.1, 0])

    def test_current_url(self):
        self.bridge.responses["window.location.href"] = "https://gemini.google.com/app/x"
        self.assertEqual(self.navigator.current_url(), "https://gemini.google.com/app/x")

if __name__ == '__main__':
    unittest.main()
