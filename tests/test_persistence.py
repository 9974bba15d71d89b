#!/usr/bin/env python3
"""
Tests for saving and restoring session state as JSON.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import logging
from datetime import datetime

import pytest

from memshell.errors import PersistenceError
from memshell.filesystem import HOME_PATH, get_node_at_path
from memshell.persistence import (
    CURRENT_VERSION, apply_state, export_state, import_state, load_from_file, save_to_file
)
from memshell.session import ShellSession


@pytest.fixture
def session():
    return ShellSession.create()


@pytest.fixture
def document(session):
    """A saved state with a new file, a variable and a changed directory."""
    session.execute('echo hi > note.txt')
    session.execute('export PROJECT=memshell')
    session.execute('cd documents')
    return json.loads(export_state(session))


def restore(data):
    fresh = ShellSession.create(load_rc=False)
    apply_state(fresh, import_state(json.dumps(data)))
    return fresh


class TestExport:

    def test_document_shape(self, document):
        assert document['version'] == CURRENT_VERSION
        assert document['mode'] == 'default'
        assert document['currentPath'] == ['home', 'user', 'documents']
        assert document['filesystem']['type'] == 'directory'
        assert isinstance(document['savedAt'], str)

    def test_only_user_variables_saved(self, document):
        assert document['environment']['PROJECT'] == 'memshell'
        assert 'HOME' not in document['environment']


class TestRoundTrip:

    def test_files_restored(self, document):
        fresh = restore(document)
        assert fresh.execute('cat ~/note.txt').text == 'hi\n'

    def test_working_directory_restored(self, document):
        fresh = restore(document)
        assert fresh.execute('pwd').text == '/home/user/documents'
        assert fresh.environment.get('PWD') == '/home/user/documents'

    def test_dates_are_datetimes(self, document):
        fresh = restore(document)
        node = get_node_at_path(fresh.filesystem, ['home', 'user', 'note.txt'])
        assert isinstance(node.created_at, datetime)
        assert isinstance(node.modified_at, datetime)

    def test_variables_and_aliases_restored(self, document):
        fresh = restore(document)
        assert fresh.environment.get('PROJECT') == 'memshell'
        assert fresh.aliases.get_alias('ll') == 'ls -la'

    def test_empty_alias_list_clears_live_aliases(self, document):
        document['aliases'] = []
        session = ShellSession.create()
        assert session.aliases.get_alias('ll') == 'ls -la'
        apply_state(session, import_state(json.dumps(document)))
        assert session.aliases.get_all_aliases() == []

    def test_absent_alias_key_keeps_live_aliases(self, document):
        del document['aliases']
        session = ShellSession.create()
        apply_state(session, import_state(json.dumps(document)))
        assert session.aliases.get_alias('ll') == 'ls -la'

    def test_missing_working_directory_falls_back_home(self, document):
        document['currentPath'] = ['nowhere']
        fresh = restore(document)
        assert fresh.filesystem.current_path == HOME_PATH

    def test_file_round_trip(self, session, tmp_path):
        session.execute('echo saved > /tmp/s.txt')
        target = tmp_path / 'state.json'
        save_to_file(session, str(target))
        restored = load_from_file(str(target))
        assert restored.execute('cat /tmp/s.txt').text == 'saved\n'


class TestImportValidation:

    def test_not_json(self):
        with pytest.raises(PersistenceError):
            import_state('{not json')

    def test_not_an_object(self):
        with pytest.raises(PersistenceError):
            import_state('[]')

    @pytest.mark.parametrize('key', ['filesystem', 'mode', 'version', 'savedAt', 'currentPath'])
    def test_missing_key(self, document, key):
        del document[key]
        with pytest.raises(PersistenceError):
            import_state(json.dumps(document))

    def test_current_path_must_be_strings(self, document):
        document['currentPath'] = ['home', 1]
        with pytest.raises(PersistenceError):
            import_state(json.dumps(document))

    def test_bad_node(self, document):
        document['filesystem']['children']['etc']['type'] = 'socket'
        with pytest.raises(PersistenceError):
            import_state(json.dumps(document))

    def test_root_must_be_directory(self, document):
        document['filesystem'] = {'name': '/', 'type': 'file', 'content': ''}
        with pytest.raises(PersistenceError):
            import_state(json.dumps(document))

    def test_missing_dates_become_now(self, document):
        del document['filesystem']['createdAt']
        state = import_state(json.dumps(document))
        assert isinstance(state.filesystem.created_at, datetime)

    def test_old_version_is_migrated(self, document, caplog):
        document['version'] = '0.9.0'
        with caplog.at_level(logging.WARNING, logger='memshell.persistence'):
            state = import_state(json.dumps(document))
        assert state.version == CURRENT_VERSION
        assert 'Version mismatch' in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(PersistenceError):
            load_from_file(str(tmp_path / 'absent.json'))
