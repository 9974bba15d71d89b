#!/usr/bin/env python3
"""
Tests for the command parser: tokenizing, redirection and chaining.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from memshell.command_parser import (
    ChainOperator, CommandChain, CommandParser, InputMode, MAX_COMMAND_LENGTH,
    OutputMode, ParsedCommand
)
from memshell.errors import ParseError
from memshell.options import parse_options


class TestTokenize(unittest.TestCase):
    """Test splitting and quoting."""

    def setUp(self):
        self.parser = CommandParser()

    def test_simple_command(self):
        cmd = self.parser.parse('ls -la /tmp')
        self.assertEqual(cmd.command, 'ls')
        self.assertEqual(cmd.args, ['-la', '/tmp'])

    def test_empty_line(self):
        self.assertTrue(self.parser.parse('').is_empty)
        self.assertTrue(self.parser.parse('   ').is_empty)

    def test_double_quotes_group(self):
        cmd = self.parser.parse('echo "hello world"')
        self.assertEqual(cmd.args, ['hello world'])

    def test_single_quotes_group(self):
        cmd = self.parser.parse("echo 'a b' c")
        self.assertEqual(cmd.args, ['a b', 'c'])

    def test_quotes_inside_other_quotes(self):
        cmd = self.parser.parse('''echo "it's here"''')
        self.assertEqual(cmd.args, ["it's here"])

    def test_unterminated_quote_is_tolerated(self):
        cmd = self.parser.parse('echo "unterminated text')
        self.assertEqual(cmd.args, ['unterminated text'])

    def test_empty_quotes_are_dropped(self):
        cmd = self.parser.parse('echo "" x')
        self.assertEqual(cmd.args, ['x'])

    def test_oversize_line(self):
        with self.assertRaises(ParseError):
            self.parser.parse('a' * (MAX_COMMAND_LENGTH + 1))


class TestRedirection(unittest.TestCase):
    """Test redirection operators."""

    def setUp(self):
        self.parser = CommandParser()

    def test_output_overwrite(self):
        cmd = self.parser.parse('echo hi > out.txt')
        self.assertEqual(cmd.args, ['hi'])
        self.assertEqual(cmd.redirect_output.mode, OutputMode.OVERWRITE)
        self.assertEqual(cmd.redirect_output.target, 'out.txt')

    def test_output_append(self):
        cmd = self.parser.parse('echo hi >> out.txt')
        self.assertEqual(cmd.redirect_output.mode, OutputMode.APPEND)
        self.assertEqual(cmd.redirect_output.target, 'out.txt')

    def test_quoted_operator_is_text(self):
        cmd = self.parser.parse('echo "a > b"')
        self.assertIsNone(cmd.redirect_output)
        self.assertEqual(cmd.args, ['a > b'])

    def test_quoted_target(self):
        cmd = self.parser.parse('echo hi > "my file.txt"')
        self.assertEqual(cmd.redirect_output.target, 'my file.txt')

    def test_input_from_file(self):
        cmd = self.parser.parse('wc -l < notes.md')
        self.assertEqual(cmd.command, 'wc')
        self.assertEqual(cmd.redirect_input.mode, InputMode.FROM_FILE)
        self.assertEqual(cmd.redirect_input.source, 'notes.md')

    def test_heredoc(self):
        cmd = self.parser.parse('cat << EOF')
        self.assertEqual(cmd.redirect_input.mode, InputMode.HEREDOC)
        self.assertEqual(cmd.redirect_input.source, 'EOF')

    def test_output_wins_over_input(self):
        cmd = self.parser.parse('sort < in.txt > out.txt')
        self.assertEqual(cmd.redirect_output.target, 'out.txt')
        self.assertIsNone(cmd.redirect_input)
        self.assertEqual(cmd.args, ['<', 'in.txt'])

    def test_missing_target_is_not_a_redirect(self):
        cmd = self.parser.parse('echo >')
        self.assertIsNone(cmd.redirect_output)
        self.assertEqual(cmd.args, ['>'])

    def test_comparison_is_not_a_redirect(self):
        cmd = self.parser.parse('echo 3 > 2 > 1')
        self.assertIsNone(cmd.redirect_output)

    def test_parent_reference_in_target_is_forbidden(self):
        with self.assertRaises(ParseError):
            self.parser.parse('echo x > ../etc/passwd')

    def test_long_target(self):
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse('echo x > ' + 'a' * 256)
        self.assertIn('Filename too long', str(ctx.exception))

    def test_str(self):
        self.assertEqual(str(self.parser.parse('echo hi > out.txt')), 'echo hi > out.txt')


class TestChains(unittest.TestCase):
    """Test &&, ||, ; and |."""

    def setUp(self):
        self.parser = CommandParser()

    def test_no_operator_returns_command(self):
        self.assertIsInstance(self.parser.parse_chain('ls -la'), ParsedCommand)

    def test_and(self):
        chain = self.parser.parse_chain('mkdir a && cd a')
        self.assertIsInstance(chain, CommandChain)
        self.assertEqual([c.command for c in chain.commands], ['mkdir', 'cd'])
        self.assertEqual(chain.operators, [ChainOperator.AND])
        self.assertFalse(chain.is_pipeline)

    def test_mixed_logical_operators(self):
        chain = self.parser.parse_chain('false || echo a ; echo b')
        self.assertEqual(chain.operators, [ChainOperator.OR, ChainOperator.SEQUENCE])
        self.assertEqual(len(chain.commands), 3)

    def test_pipeline(self):
        chain = self.parser.parse_chain('cat f | grep x | wc -l')
        self.assertTrue(chain.is_pipeline)
        self.assertEqual(chain.commands[2].args, ['-l'])

    def test_or_is_not_two_pipes(self):
        found = self.parser.find_chain_operators('a||b|c')
        self.assertEqual(found, [(1, ChainOperator.OR), (4, ChainOperator.PIPE)])

    def test_quoted_operators_ignored(self):
        cmd = self.parser.parse_chain('echo "a && b | c"')
        self.assertIsInstance(cmd, ParsedCommand)
        self.assertEqual(cmd.args, ['a && b | c'])

    def test_pipe_mixed_with_logical_operator(self):
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse_chain('ls | grep a && echo ok')
        self.assertIn('Cannot mix', str(ctx.exception))

    def test_dangling_operator(self):
        with self.assertRaises(ParseError):
            self.parser.parse_chain('ls &&')
        with self.assertRaises(ParseError):
            self.parser.parse_chain('&& ls')

    def test_redirect_in_chain_segment(self):
        chain = self.parser.parse_chain('echo a > f.txt && cat f.txt')
        self.assertEqual(chain.commands[0].redirect_output.target, 'f.txt')

    def test_chain_operator_count_checked(self):
        with self.assertRaises(ParseError):
            CommandChain(commands=[ParsedCommand('ls')], operators=[ChainOperator.AND])


class TestParseOptions(unittest.TestCase):

    def test_combined_short_flags(self):
        options = parse_options(['-la', 'dir'])
        self.assertEqual(options.flags, {'l', 'a'})
        self.assertEqual(options.positional, ['dir'])

    def test_long_flag(self):
        self.assertTrue(parse_options(['--all']).has('a', 'all'))

    def test_double_dash_ends_options(self):
        options = parse_options(['-r', '--', '-x'])
        self.assertEqual(options.flags, {'r'})
        self.assertEqual(options.positional, ['-x'])

    def test_lone_dash_is_positional(self):
        self.assertEqual(parse_options(['-']).positional, ['-'])


if __name__ == '__main__':
    unittest.main()
