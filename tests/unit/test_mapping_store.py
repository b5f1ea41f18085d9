"""
Unit tests for mapping persistence.
"""

import pytest
import os
import json

from ticket_sync.mapping.store import JsonFileMappingStore, MappingStore, mapping_key


@pytest.mark.unit
class TestMappingStore:
    """Test cases for the in-memory MappingStore."""

    def test_save_and_load(self, memory_store, full_mapping):
        memory_store.save('site-1', 'list-1', full_mapping)

        assert memory_store.load('site-1', 'list-1') == full_mapping

    def test_load_missing(self, memory_store):
        assert memory_store.load('site-1', 'list-1') is None

    def test_mappings_scoped_by_pair(self, memory_store):
        memory_store.save('site-1', 'list-1', {'subject': 'Title'})

        assert memory_store.load('site-1', 'list-2') is None
        assert memory_store.load('site-2', 'list-1') is None

    def test_saved_copy_is_independent(self, memory_store):
        mapping = {'subject': 'Title'}
        memory_store.save('site-1', 'list-1', mapping)
        mapping['subject'] = 'Changed'

        assert memory_store.load('site-1', 'list-1') == {'subject': 'Title'}

    def test_delete(self, memory_store):
        memory_store.save('site-1', 'list-1', {'subject': 'Title'})
        memory_store.delete('site-1', 'list-1')

        assert memory_store.load('site-1', 'list-1') is None

    def test_last_selection(self, memory_store):
        memory_store.save_last_selection('group', 'site-1', 'Helpdesk')
        memory_store.save_last_selection('table', 'list-1', 'Tickets')

        assert memory_store.load_last_selection('group') == {'id': 'site-1', 'name': 'Helpdesk'}
        assert memory_store.load_last_selection('table') == {'id': 'list-1', 'name': 'Tickets'}

    def test_last_selection_missing(self, memory_store):
        assert memory_store.load_last_selection('group') is None

    def test_clear_all(self, memory_store):
        memory_store.save('site-1', 'list-1', {'subject': 'Title'})
        memory_store.save_last_selection('group', 'site-1', 'Helpdesk')

        memory_store.clear_all()

        assert memory_store.load('site-1', 'list-1') is None
        assert memory_store.load_last_selection('group') is None

    def test_mapping_key(self):
        assert mapping_key('site-1', 'list-1') == 'fieldMapping_site-1_list-1'


@pytest.mark.unit
class TestJsonFileMappingStore:
    """Test cases for JsonFileMappingStore."""

    def test_persists_across_instances(self, temp_dir, full_mapping):
        path = os.path.join(temp_dir, 'mappings.json')
        JsonFileMappingStore(path).save('site-1', 'list-1', full_mapping)

        assert JsonFileMappingStore(path).load('site-1', 'list-1') == full_mapping

    def test_file_layout(self, temp_dir):
        path = os.path.join(temp_dir, 'nested', 'mappings.json')
        store = JsonFileMappingStore(path)
        store.save('site-1', 'list-1', {'subject': 'Title'})
        store.save_last_selection('table', 'list-1', 'Tickets')

        with open(path) as f:
            data = json.load(f)

        assert data == {
            'fieldMapping_site-1_list-1': {'subject': 'Title'},
            'lastSelectedList': {'id': 'list-1', 'name': 'Tickets'},
        }

    def test_clear_all_keeps_unrelated_keys(self, temp_dir):
        path = os.path.join(temp_dir, 'mappings.json')
        with open(path, 'w') as f:
            json.dump({'theme': 'dark', 'fieldMapping_a_b': {'subject': 'Title'}}, f)

        JsonFileMappingStore(path).clear_all()

        with open(path) as f:
            assert json.load(f) == {'theme': 'dark'}

    def test_corrupt_file_is_tolerated(self, temp_dir):
        path = os.path.join(temp_dir, 'mappings.json')
        with open(path, 'w') as f:
            f.write('{not json')
        store = JsonFileMappingStore(path)

        assert store.load('site-1', 'list-1') is None

        store.save('site-1', 'list-1', {'subject': 'Title'})
        assert store.load('site-1', 'list-1') == {'subject': 'Title'}

    def test_unusable_path_never_raises(self, temp_dir):
        # A directory cannot be read or written as a file
        store = JsonFileMappingStore(temp_dir)

        store.save('site-1', 'list-1', {'subject': 'Title'})
        store.save_last_selection('group', 'site-1', 'Helpdesk')
        store.clear_all()

        assert store.load('site-1', 'list-1') is None
        assert store.load_last_selection('group') is None

    def test_drops_empty_entries_on_load(self, temp_dir):
        path = os.path.join(temp_dir, 'mappings.json')
        with open(path, 'w') as f:
            json.dump({'fieldMapping_s_l': {'subject': 'Title', 'route': ''}}, f)

        assert JsonFileMappingStore(path).load('s', 'l') == {'subject': 'Title'}

    def test_subclass_of_memory_store(self, temp_dir):
        assert isinstance(JsonFileMappingStore(os.path.join(temp_dir, 'm.json')), MappingStore)
