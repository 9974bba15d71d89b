#!/usr/bin/env python3
"""
Tests for tab completion.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from memshell.autocomplete import common_prefix
from memshell.session import ShellSession


@pytest.fixture
def session():
    return ShellSession.create()


@pytest.fixture
def complete(session):
    return lambda text: session.complete(text).completions


class TestCommandCompletion:

    def test_empty_input_lists_everything(self, complete):
        completions = complete('')
        assert 'cat' in completions
        assert 'll' in completions
        assert completions == sorted(completions)

    def test_prefix(self, session):
        result = session.complete('ec')
        assert result.completions == ['echo']
        assert result.common_prefix == 'echo'

    def test_aliases_included(self, complete):
        assert complete('l') == ['l', 'la', 'll', 'ls']

    def test_after_chain_operator(self, complete):
        assert complete('ls && ec') == ['echo']
        assert complete('cat f | gr') == ['grep']

    def test_no_match(self, complete):
        assert complete('zz') == []


class TestPathCompletion:

    def test_directories_only_for_cd(self, session):
        result = session.complete('cd d')
        assert result.completions == ['documents/', 'downloads/']
        assert result.common_prefix == 'do'

    def test_files_and_directories_for_cat(self, complete):
        assert complete('cat documents/') == [
            'documents/notes.md', 'documents/projects/', 'documents/readme.txt']

    def test_hidden_only_with_dot_prefix(self, complete):
        assert complete('cat ') == ['documents/', 'downloads/']
        assert complete('cat .') == ['.bashrc', '.secret']

    def test_absolute_path(self, complete):
        assert complete('cd /e') == ['/etc/']

    def test_missing_directory(self, complete):
        assert complete('cat nope/') == []

    def test_options_are_not_completed(self, complete):
        assert complete('ls -') == []
        assert complete('ls -l') == []

    def test_lone_dash_completes_paths(self, session, complete):
        session.execute('touch -notes.txt')
        assert complete('cat -') == ['-notes.txt']

    def test_heredoc_offers_nothing(self, session):
        result = session.complete('cat << ')
        assert result.completions == []
        assert result.common_prefix == ''

    def test_redirect_target(self, complete):
        assert complete('echo hi > doc') == ['documents/']

    def test_input_redirect_completes_files_only(self, complete):
        assert complete('cat < d') == []
        assert complete('cat < .b') == ['.bashrc']

    def test_unknown_command_arguments(self, complete):
        assert complete('echo x') == []


class TestOtherCompletion:

    def test_alias_names(self, complete):
        assert complete('unalias l') == ['l', 'la', 'll']

    def test_man_pages(self, complete):
        assert complete('man g') == ['grep']

    def test_completion_is_read_only(self, session):
        before = session.filesystem.root.to_dict()
        session.complete('cat documents/')
        session.complete('cd ')
        assert session.filesystem.root.to_dict() == before

    def test_sees_live_changes(self, session, complete):
        session.execute('mkdir dev')
        assert complete('cd de') == ['dev/']


class TestApplyCompletion:

    def test_command_gets_trailing_space(self, session):
        assert session.completer.apply_completion('ec', 'echo') == 'echo '

    def test_argument_replaced(self, session):
        assert session.completer.apply_completion('cd doc', 'documents/') == 'cd documents/'

    def test_argument_appended(self, session):
        assert session.completer.apply_completion('cat ', 'documents/') == 'cat documents/'

    def test_chain_prefix_kept(self, session):
        assert session.completer.apply_completion('ls && ec', 'echo') == 'ls && echo '

    def test_redirect_target(self, session):
        assert session.completer.apply_completion('echo hi > doc', 'documents/') == \
            'echo hi > documents/'


def test_common_prefix():
    assert common_prefix([]) == ''
    assert common_prefix(['abc']) == 'abc'
    assert common_prefix(['documents/', 'downloads/']) == 'do'
    assert common_prefix(['a', 'b']) == ''
