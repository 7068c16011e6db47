#!/usr/bin/env python3
"""
Tests for the page bridges
"""

import json
import subprocess
import unittest
from unittest import mock
import sys
import os

import requests
import websocket

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from browser.page_evaluator import AppleScriptBridge, CDPBridge, create_bridge
from errors import BridgeError

def completed(stdout):
    return subprocess.CompletedProcess(args=['osascript'], returncode=0, stdout=stdout, stderr='')

class TestAppleScriptBridge(unittest.TestCase):
    """Test cases for AppleScriptBridge"""

    def setUp(self):
        self.bridge = AppleScriptBridge({'bridge': {'timeout': 12}})

    @mock.patch('browser.page_evaluator.subprocess.run')
    def test_evaluate_escapes_and_strips(self, run):
        run.return_value = completed("yes\n")

        result = self.bridge.evaluate('document.querySelector("a[href=\\"x\\"]") ? "yes" : "no"')

        self.assertEqual(result, "yes")
        args, kwargs = run.call_args
        command = args[0]
        self.assertEqual(command[:2], ['osascript', '-e'])
        self.assertIn('execute active tab of front window javascript "', command[2])
        self.assertIn('document.querySelector(\\"a[href=\\\\\\"x\\\\\\"]\\")', command[2])
        self.assertEqual(kwargs['timeout'], 12)

    @mock.patch('browser.page_evaluator.subprocess.run')
    def test_evaluate_fails_soft(self, run):
        failures = [
            subprocess.TimeoutExpired(cmd='osascript', timeout=12),
            subprocess.CalledProcessError(1, 'osascript', stderr='execution error'),
            FileNotFoundError('osascript'),
        ]
        for failure in failures:
            with self.subTest(failure=type(failure).__name__):
                run.side_effect = failure
                self.assertEqual(self.bridge.evaluate("1 + 1"), "")

    @mock.patch('browser.page_evaluator.subprocess.run')
    def test_oversized_output_is_discarded(self, run):
        bridge = AppleScriptBridge({'bridge': {'max_output_mb': 0.00001}})
        run.return_value = completed("x" * 500)
        self.assertEqual(bridge.evaluate("big"), "")

    @mock.patch('browser.page_evaluator.subprocess.run')
    def test_open_url(self, run):
        run.return_value = completed("")
        self.bridge.open_url('https://gemini.google.com/app/"abc"')
        script = run.call_args[0][0][2]
        self.assertIn('set URL of active tab of front window to "https://gemini.google.com/app/\\"abc\\""', script)

    @mock.patch('browser.page_evaluator.subprocess.run')
    def test_open_url_failure_raises(self, run):
        run.side_effect = subprocess.CalledProcessError(1, 'osascript')
        with self.assertRaises(BridgeError):
            self.bridge.open_url('https://gemini.google.com/app')

class FakeSocket:
    """Answers each CDP command after an unrelated event"""

    def __init__(self, result):
        self.result = result
        self.sent = []
        self.pending = []
        self.closed = False

    def send(self, payload):
        command = json.loads(payload)
        self.sent.append(command)
        self.pending = [
            json.dumps({'method': 'Page.frameNavigated', 'params': {}}),
            json.dumps({'id': command['id'], 'result': self.result}),
        ]

    def recv(self):
        return self.pending.pop(0)

    def close(self):
        self.closed = True

TABS = [
    {'type': 'service_worker', 'url': 'https://gemini.google.com/sw.js', 'webSocketDebuggerUrl': 'ws://sw'},
    {'type': 'page', 'url': 'https://example.com/', 'webSocketDebuggerUrl': 'ws://example'},
    {'type': 'page', 'url': 'https://gemini.google.com/app/1', 'webSocketDebuggerUrl': 'ws://gemini'},
]

class TestCDPBridge(unittest.TestCase):
    """Test cases for CDPBridge"""

    def setUp(self):
        patcher = mock.patch('browser.page_evaluator.requests.get')
        self.get = patcher.start()
        self.addCleanup(patcher.stop)
        self.get.return_value.json.return_value = TABS

        patcher = mock.patch('browser.page_evaluator.websocket.create_connection')
        self.connect = patcher.start()
        self.addCleanup(patcher.stop)

        self.bridge = CDPBridge({'bridge': {'cdp_host': 'devtools', 'cdp_port': 9333}},
                                host_hint='gemini.google.com')

    def use_socket(self, result):
        socket = FakeSocket(result)
        self.connect.return_value = socket
        return socket

    def test_evaluate_picks_matching_tab(self):
        socket = self.use_socket({'result': {'type': 'string', 'value': 'complete'}})

        self.assertEqual(self.bridge.evaluate("document.readyState"), "complete")

        self.get.assert_called_once_with("http://devtools:9333/json/list", timeout=10)
        self.assertEqual(self.connect.call_args[0][0], 'ws://gemini')
        self.assertEqual(socket.sent[0]['method'], 'Runtime.evaluate')
        self.assertTrue(socket.sent[0]['params']['returnByValue'])

    def test_values_are_stringified(self):
        cases = [(12, "12"), (12.0, "12"), (1.5, "1.5"), (True, "true"), (None, ""), ([1], "[1]")]
        for value, expected in cases:
            with self.subTest(value=value):
                self.use_socket({'result': {'type': 'x', 'value': value}})
                self.bridge.close()
                self.assertEqual(self.bridge.evaluate("x"), expected)

    def test_script_exception_gives_empty(self):
        self.use_socket({'result': {'type': 'object'}, 'exceptionDetails': {'text': 'Uncaught'}})
        self.assertEqual(self.bridge.evaluate("throw 1"), "")

    def test_transport_failures_give_empty(self):
        self.get.side_effect = requests.ConnectionError("refused")
        self.assertEqual(self.bridge.evaluate("1"), "")

        self.get.side_effect = None
        self.connect.side_effect = websocket.WebSocketException("handshake")
        self.assertEqual(self.bridge.evaluate("1"), "")

    def test_falls_back_to_first_page(self):
        self.use_socket({'result': {'value': 'ok'}})
        bridge = CDPBridge({}, host_hint='claude.ai')
        bridge.evaluate("1")
        self.assertEqual(self.connect.call_args[0][0], 'ws://example')

    def test_open_url(self):
        socket = self.use_socket({'frameId': 'F'})
        self.bridge.open_url("https://gemini.google.com/app/2")
        self.assertEqual(socket.sent[0], {
            'id': 1, 'method': 'Page.navigate', 'params': {'url': "https://gemini.google.com/app/2"},
        })

    def test_open_url_without_tabs_raises(self):
        self.get.return_value.json.return_value = []
        with self.assertRaises(BridgeError):
            self.bridge.open_url("https://gemini.google.com/app")

    def test_connection_is_reused_and_closed(self):
        socket = self.use_socket({'result': {'value': 'a'}})
        self.bridge.evaluate("1")
        self.bridge.evaluate("2")
        self.assertEqual(self.connect.call_count, 1)
        self.assertEqual([cmd['id'] for cmd in socket.sent], [1, 2])

        self.bridge.close()
        self.assertTrue(socket.closed)

class TestCreateBridge(unittest.TestCase):

    def test_backends(self):
        self.assertIsInstance(create_bridge({}), AppleScriptBridge)
        bridge = create_bridge({'bridge': {'backend': 'CDP'}}, 'https://gemini.google.com/app')
        self.assertIsInstance(bridge, CDPBridge)
        self.assertEqual(bridge.host_hint, 'gemini.google.com')

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            create_bridge({'bridge': {'backend': 'telepathy'}})

if __name__ == '__main__':
    unittest.main()
