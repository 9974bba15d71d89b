#!/usr/bin/env python3
"""
Tests for command results and host actions.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from memshell.results import (
    CLEAR_SENTINEL, EDITOR_SENTINEL, ClearScreen, CommandResult, OpenEditor, OutputSegment,
    flatten
)


class TestCommandResult(unittest.TestCase):

    def test_ok(self):
        result = CommandResult.ok('done')
        self.assertTrue(result.success)
        self.assertEqual(result.exit_code, 0)
        self.assertIsNone(result.error)

    def test_fail(self):
        result = CommandResult.fail('x: broken')
        self.assertFalse(result.success)
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(str(result), 'x: broken')

    def test_text_flattens_segments(self):
        result = CommandResult.ok([OutputSegment('a', 'directory'), OutputSegment(' b')])
        self.assertEqual(result.text, 'a b')
        self.assertEqual(flatten('plain'), 'plain')


class TestHostActions(unittest.TestCase):

    def test_clear_sentinel(self):
        self.assertEqual(ClearScreen().encode(), CLEAR_SENTINEL)

    def test_editor_encoding(self):
        action = OpenEditor(filename='notes.txt', content='héllo\nwörld')
        encoded = action.encode()
        self.assertTrue(encoded.startswith(EDITOR_SENTINEL + 'notes.txt:'))
        self.assertEqual(OpenEditor.decode(encoded), action)

    def test_decode_rejects_other_text(self):
        self.assertIsNone(OpenEditor.decode('hello'))
        self.assertIsNone(OpenEditor.decode(EDITOR_SENTINEL + 'no-separator'))


if __name__ == '__main__':
    unittest.main()
