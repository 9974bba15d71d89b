#!/usr/bin/env python3
"""
Tests for the terminal front end: prompt, rendering, history, scripts
and the command line entry point.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

import pytest

from memshell.commands import HISTORY_FILE
from memshell.filesystem import write_file
from memshell.results import CommandResult, OutputSegment
from memshell.session import ShellSession
from memshell.terminal import (
    CLEAR_SCREEN, CommandHistory, TerminalConfig, TerminalSession, main
)


class TestTerminalSession(unittest.TestCase):
    """Test the terminal session."""

    def setUp(self):
        self.config = TerminalConfig(hostname='box', enable_colors=False)
        self.terminal = TerminalSession(config=self.config)

    def test_prompt(self):
        self.assertEqual(self.terminal.get_prompt(), 'user@box:~$ ')
        self.terminal.execute_command('cd /tmp')
        self.assertEqual(self.terminal.get_prompt(), 'user@box:/tmp$ ')

    def test_colored_prompt(self):
        terminal = TerminalSession(config=TerminalConfig(hostname='box'))
        prompt = terminal.get_prompt()
        self.assertIn('\033[32muser@box\033[0m', prompt)
        self.assertIn('\033[34m~\033[0m', prompt)

    def test_execute_command(self):
        self.assertEqual(self.terminal.execute_command('pwd'), '/home/user')
        self.assertEqual(self.terminal.execute_command('echo hi'), 'hi')

    def test_empty_and_exit(self):
        self.assertEqual(self.terminal.execute_command(''), '')
        self.assertIsNone(self.terminal.execute_command('exit'))
        self.assertIsNone(self.terminal.execute_command('quit'))

    def test_error_rendering(self):
        self.assertEqual(self.terminal.execute_command('cat nope'),
                         'cat: nope: No such file or directory')

    def test_output_and_error_together(self):
        output = self.terminal.execute_command('cat nope ; echo after')
        self.assertEqual(output, 'after\ncat: nope: No such file or directory')

    def test_clear(self):
        self.assertEqual(self.terminal.execute_command('clear'), CLEAR_SCREEN)

    def test_editor_request(self):
        output = self.terminal.execute_command('vi documents/readme.txt')
        self.assertTrue(output.startswith('vi: documents/readme.txt'))

    def test_initial_directory(self):
        terminal = TerminalSession(config=TerminalConfig(initial_dir='/tmp', enable_colors=False))
        self.assertEqual(terminal.execute_command('pwd'), '/tmp')

    def test_missing_initial_directory_is_ignored(self):
        terminal = TerminalSession(config=TerminalConfig(initial_dir='/nope', enable_colors=False))
        self.assertEqual(terminal.execute_command('pwd'), '/home/user')

    def test_without_rc_file(self):
        terminal = TerminalSession(config=TerminalConfig(source_rc_file=False,
                                                         enable_colors=False))
        self.assertEqual(terminal.execute_command('alias'), '')

    def test_run_command(self):
        self.assertEqual(self.terminal.run_command('echo x'), 'x')
        self.assertEqual(self.terminal.run_command('exit'), '')

    def test_run_script(self):
        outputs = self.terminal.run_script([
            '# setup',
            'echo a',
            '',
            'exit',
            'echo b',
        ])
        self.assertEqual(outputs, ['a'])


class TestRendering(unittest.TestCase):

    def test_segments_colored(self):
        terminal = TerminalSession(config=TerminalConfig())
        result = CommandResult.ok([OutputSegment('docs', 'directory'),
                                   OutputSegment('  '),
                                   OutputSegment('a.txt', 'file')])
        self.assertEqual(terminal.render(result), '\033[34mdocs\033[0m  a.txt')

    def test_segments_plain_without_colors(self):
        terminal = TerminalSession(config=TerminalConfig(enable_colors=False))
        result = CommandResult.ok([OutputSegment('docs', 'directory')])
        self.assertEqual(terminal.render(result), 'docs')

    def test_error_colored(self):
        terminal = TerminalSession(config=TerminalConfig())
        self.assertEqual(terminal.render(CommandResult.fail('boom')),
                         '\033[31mboom\033[0m')


class TestCommandHistory(unittest.TestCase):
    """Test command history."""

    def test_navigation(self):
        history = CommandHistory()
        history.add('ls')
        history.add('pwd')
        self.assertEqual(history.previous(), 'pwd')
        self.assertEqual(history.previous(), 'ls')
        self.assertIsNone(history.previous())
        self.assertEqual(history.next(), 'pwd')
        self.assertEqual(history.next(), '')

    def test_blank_lines_ignored(self):
        history = CommandHistory()
        history.add('   ')
        self.assertEqual(history.history, [])

    def test_max_size(self):
        history = CommandHistory(max_size=2)
        for command in ('a', 'b', 'c'):
            history.add(command)
        self.assertEqual(history.history, ['b', 'c'])

    def test_saved_to_virtual_filesystem(self):
        session = ShellSession.create()
        history = CommandHistory(session=session)
        history.add('ls')
        history.add('pwd')
        self.assertEqual(session.execute('history').text, '   1  ls\n   2  pwd')

    def test_loaded_from_virtual_filesystem(self):
        session = ShellSession.create()
        write_file(session.filesystem, HISTORY_FILE, 'a\nb\n')
        history = CommandHistory(session=session)
        self.assertEqual(history.history, ['a', 'b'])
        self.assertEqual(history.previous(), 'b')


class TestMain:
    """The memshell console script."""

    def test_command(self, capsys):
        assert main(['-c', 'echo hello', '--no-rc']) == 0
        assert capsys.readouterr().out == 'hello\n'

    def test_exit_code(self, capsys):
        assert main(['-c', 'false']) == 1

    def test_directory(self, capsys):
        main(['-d', '/etc', '-c', 'pwd'])
        assert capsys.readouterr().out == '/etc\n'

    def test_save_and_load(self, tmp_path, capsys):
        state = tmp_path / 'state.json'
        assert main(['-c', 'echo saved > /tmp/s.txt', '--save', str(state)]) == 0
        assert state.exists()
        capsys.readouterr()

        assert main(['--load', str(state), '-c', 'cat /tmp/s.txt']) == 0
        assert capsys.readouterr().out == 'saved\n'

    def test_load_bad_file(self, tmp_path, capsys):
        bad = tmp_path / 'bad.json'
        bad.write_text('not json')
        assert main(['--load', str(bad), '-c', 'pwd']) == 1
        assert 'memshell:' in capsys.readouterr().err


if __name__ == '__main__':
    unittest.main()
