#!/usr/bin/env python3
"""
Unit tests for wheelspin core functionality.

Run with:
    python -m pytest tests/
  or
    python -m unittest discover tests/
"""
import io
import json
import logging
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

# Make sure wheelspin module can be imported regardless of where tests are run from.
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import wheelspin
from picker.defaults import builtin_lists
from picker.services import CallbackScheduler

# ---------------------------------------------------------------------------
# Constants used across tests
# ---------------------------------------------------------------------------
USER_LIST = {'id': 'lunch', 'name': 'Lunch', 'items': ['Pizza', 'Sushi', 'Tacos'],
             'originalItems': ['Pizza', 'Sushi', 'Tacos'], 'isDefault': False}


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def make_config(tmp_dir: str, **overrides) -> dict:
    config = dict(wheelspin.DEFAULT_CONFIG)
    config['state_file'] = os.path.join(tmp_dir, 'state.json')
    config['history_file'] = os.path.join(tmp_dir, 'history.json')
    config.update(overrides)
    return config


def write_state(tmp_dir: str, **overrides) -> str:
    state = {
        'schemaVersion': 1,
        'lists': [dict(USER_LIST)],
        'activeListId': 'lunch',
        'removeAfterPick': False,
        'animationDuration': 3,
    }
    state.update(overrides)
    path = os.path.join(tmp_dir, 'state.json')
    with open(path, 'w') as f:
        json.dump(state, f)
    return path


def read_state(tmp_dir: str) -> dict:
    with open(os.path.join(tmp_dir, 'state.json')) as f:
        return json.load(f)


class TmpDirTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self._orig = os.getcwd()
        os.chdir(self.tmp)
        self.env = patch.dict(os.environ, {}, clear=False)
        self.env.start()
        for name in ('WHEELSPIN_STATE_FILE', 'WHEELSPIN_HISTORY_FILE',
                     'WHEELSPIN_WEBHOOK_URL', 'WHEELSPIN_LOG_LEVEL'):
            os.environ.pop(name, None)

    def tearDown(self):
        self.env.stop()
        os.chdir(self._orig)
        shutil.rmtree(self.tmp, ignore_errors=True)
        logging.getLogger('wheelspin').setLevel(logging.WARNING)

    def make_picker(self, value=0.5, **kwargs) -> wheelspin.WheelPicker:
        kwargs.setdefault('animate', False)
        kwargs.setdefault('out', io.StringIO())
        return wheelspin.WheelPicker(config=make_config(self.tmp), random_source=lambda: value,
                                     **kwargs)


# ===========================================================================
# Helper function tests
# ===========================================================================

class TestSetupLogging(unittest.TestCase):

    def tearDown(self):
        logging.getLogger('wheelspin').setLevel(logging.WARNING)

    def test_level_applied(self):
        logger = wheelspin.setup_logging('DEBUG')
        self.assertEqual(logger.level, logging.DEBUG)

    def test_unknown_level_defaults_to_warning(self):
        self.assertEqual(wheelspin.setup_logging('LOUD').level, logging.WARNING)

    def test_single_handler(self):
        wheelspin.setup_logging('INFO')
        wheelspin.setup_logging('INFO')
        self.assertEqual(len(logging.getLogger('wheelspin').handlers), 1)


class TestParseItemsText(unittest.TestCase):
    """Tests for wheelspin.parse_items_text()."""

    def test_comma_separated(self):
        self.assertEqual(wheelspin.parse_items_text('Pizza, Sushi ,Tacos'),
                         ['Pizza', 'Sushi', 'Tacos'])

    def test_lines(self):
        self.assertEqual(wheelspin.parse_items_text('Pizza\nSushi\n\nTacos\n'),
                         ['Pizza', 'Sushi', 'Tacos'])

    def test_lines_keep_commas(self):
        self.assertEqual(wheelspin.parse_items_text('Salt, pepper\nOil'),
                         ['Salt, pepper', 'Oil'])

    def test_bullets_stripped(self):
        text = '- Pizza\n* Sushi\n• Tacos\n1. Curry\n  2. Pasta'
        self.assertEqual(wheelspin.parse_items_text(text),
                         ['Pizza', 'Sushi', 'Tacos', 'Curry', 'Pasta'])

    def test_windows_newlines(self):
        self.assertEqual(wheelspin.parse_items_text('a\r\nb'), ['a', 'b'])

    def test_single_item(self):
        self.assertEqual(wheelspin.parse_items_text('  Pizza '), ['Pizza'])

    def test_empty(self):
        self.assertEqual(wheelspin.parse_items_text(''), [])
        self.assertEqual(wheelspin.parse_items_text(' , ,'), [])


class TestLoadConfig(TmpDirTestCase):

    def test_missing_file_uses_defaults(self):
        self.assertEqual(wheelspin.load_config('nope.json'), wheelspin.DEFAULT_CONFIG)

    def test_file_values(self):
        with open('config.json', 'w') as f:
            json.dump({'max_history_size': 5, 'spin_pause_seconds': 0.5}, f)
        config = wheelspin.load_config('config.json')
        self.assertEqual(config['max_history_size'], 5)
        self.assertEqual(config['spin_pause_seconds'], 0.5)
        self.assertEqual(config['state_file'], '.wheelspin_state.json')

    def test_env_overrides(self):
        with open('config.json', 'w') as f:
            json.dump({'state_file': 'from-file.json'}, f)
        with patch.dict(os.environ, {'WHEELSPIN_STATE_FILE': 'from-env.json',
                                     'WHEELSPIN_WEBHOOK_URL': 'https://example.com/h'}):
            config = wheelspin.load_config('config.json')
        self.assertEqual(config['state_file'], 'from-env.json')
        self.assertEqual(config['webhook_url'], 'https://example.com/h')

    def test_invalid_json(self):
        with open('config.json', 'w') as f:
            f.write('{nope')
        with self.assertRaises(wheelspin.ConfigError):
            wheelspin.load_config('config.json')

    def test_not_an_object(self):
        with open('config.json', 'w') as f:
            json.dump([1], f)
        with self.assertRaises(wheelspin.ConfigError):
            wheelspin.load_config('config.json')

    def test_bad_number(self):
        with open('config.json', 'w') as f:
            json.dump({'max_history_size': 'lots'}, f)
        with self.assertRaises(wheelspin.ConfigError):
            wheelspin.load_config('config.json')


# ===========================================================================
# WheelPicker tests
# ===========================================================================

class TestWheelPicker(TmpDirTestCase):

    def test_first_run_seeds_builtins(self):
        picker = self.make_picker()
        self.assertEqual([l['id'] for l in picker.store.lists],
                         [l['id'] for l in builtin_lists()])

    def test_spin_returns_winner(self):
        write_state(self.tmp)
        picker = self.make_picker(0.5)
        self.assertEqual(picker.spin(), ['Sushi'])
        self.assertIn('Winner: Sushi', picker.out.getvalue())
        self.assertEqual(picker.history.data[-1]['item'], 'Sushi')
        self.assertEqual(picker.history.data[-1]['list_name'], 'Lunch')

    def test_spin_with_removal_persists(self):
        write_state(self.tmp, removeAfterPick=True)
        picker = self.make_picker(0.0)
        self.assertEqual(picker.spin(2), ['Pizza', 'Sushi'])
        self.assertEqual(read_state(self.tmp)['lists'][0]['items'], ['Tacos'])
        self.assertIn('1 left', picker.out.getvalue())

    def test_spin_empty_list(self):
        write_state(self.tmp, lists=[dict(USER_LIST, items=[])])
        picker = self.make_picker()
        self.assertEqual(picker.spin(), [])
        self.assertIn('empty', picker.out.getvalue())

    def test_sequence_stops_when_empty(self):
        write_state(self.tmp, removeAfterPick=True)
        picker = self.make_picker(0.0)
        self.assertEqual(picker.spin(5), ['Pizza', 'Sushi', 'Tacos'])
        self.assertEqual(picker.session.stop_reason, 'list_empty')

    def test_animated_spin_with_fake_clock(self):
        write_state(self.tmp)
        clock = FakeClock()
        picker = self.make_picker(0.5, animate=True,
                                  scheduler=CallbackScheduler(clock=clock, sleep=clock.sleep))
        self.assertEqual(picker.spin(), ['Sushi'])
        output = picker.out.getvalue()
        self.assertIn('▼', output)
        self.assertIn('Winner: Sushi', output)
        self.assertAlmostEqual(clock.now, 3.0, places=6)

    def test_animation_ends_on_winner(self):
        write_state(self.tmp)
        clock = FakeClock()
        picker = self.make_picker(0.99, animate=True,
                                  scheduler=CallbackScheduler(clock=clock, sleep=clock.sleep))
        picker.spin()
        frames = [f for f in picker.out.getvalue().split('\r') if '▼' in f]
        self.assertIn('Tacos', frames[-1])

    def test_migrated_state_saved_on_startup(self):
        write_state(self.tmp, schemaVersion=0)
        picker = self.make_picker()
        saved = read_state(self.tmp)
        self.assertEqual(saved['schemaVersion'], 1)
        self.assertEqual(saved['lists'][-1]['id'], 'lunch')
        self.assertEqual(picker.store.active_list_id, builtin_lists()[0]['id'])

    def test_malformed_state_file_starts_fresh(self):
        write_state(self.tmp, lists=5)
        picker = self.make_picker()
        self.assertEqual([l['id'] for l in picker.store.lists],
                         [l['id'] for l in builtin_lists()])

    def test_save_failure_keeps_session_usable(self):
        config = make_config(self.tmp, state_file=os.path.join(self.tmp, 'gone', 's.json'))
        out = io.StringIO()
        picker = wheelspin.WheelPicker(config=config, animate=False, out=out,
                                       random_source=lambda: 0.0)
        created = picker.store.create_list('Temp', ['a', 'b'])
        picker.store.create_list('Temp2', ['c'])
        self.assertIsNotNone(created)
        self.assertEqual(out.getvalue().count('could not save'), 1)
        self.assertEqual(picker.spin(), ['c'])

    def test_find_list(self):
        write_state(self.tmp)
        picker = self.make_picker()
        picker.store.create_list('Dessert', ['Cake'])
        self.assertEqual(picker.find_list('lunch')['name'], 'Lunch')
        self.assertEqual(picker.find_list('DESSERT')['name'], 'Dessert')
        self.assertEqual(picker.find_list('2')['name'], 'Dessert')
        self.assertIsNone(picker.find_list('9'))
        self.assertIsNone(picker.find_list('nothing'))

    def test_show_lists_marks_active(self):
        write_state(self.tmp)
        picker = self.make_picker()
        picker.show_lists()
        self.assertIn('Lunch', picker.out.getvalue())
        self.assertIn('id: lunch', picker.out.getvalue())

    def test_show_history_skips_records_without_item(self):
        with open(os.path.join(self.tmp, 'history.json'), 'w') as f:
            json.dump([{'foo': 1}, {'item': 'Pizza', 'list_name': 'Lunch'}], f)
        picker = self.make_picker()
        picker.show_history()
        self.assertIn('Pizza', picker.out.getvalue())
        self.assertIn('from Lunch', picker.out.getvalue())

    @patch('picker.notifier.requests.post')
    def test_webhook_on_winner(self, mock_post):
        write_state(self.tmp)
        config = make_config(self.tmp, webhook_url='https://example.com/hook')
        picker = wheelspin.WheelPicker(config=config, animate=False, out=io.StringIO(),
                                       random_source=lambda: 0.0)
        picker.spin()
        self.assertEqual(mock_post.call_args[1]['json']['winner'], 'Pizza')

    def test_interactive_quit(self):
        write_state(self.tmp)
        picker = self.make_picker()
        with patch('builtins.input', side_effect=['1', 'q']):
            picker.interactive_mode()
        self.assertIn('Winner: Sushi', picker.out.getvalue())

    def test_interactive_create_list(self):
        write_state(self.tmp)
        picker = self.make_picker()
        with patch('builtins.input', side_effect=['5', 'Drinks', 'Tea, Coffee', '', 'q']):
            picker.interactive_mode()
        self.assertEqual(picker.store.active_list['items'], ['Tea', 'Coffee'])


# ===========================================================================
# Command line tests
# ===========================================================================

class TestMain(TmpDirTestCase):

    def _main(self, *argv):
        out = io.StringIO()
        with patch('sys.stdout', out):
            code = wheelspin.main(['--state-file', os.path.join(self.tmp, 'state.json'),
                                   '--no-animation'] + list(argv))
        return code, out.getvalue()

    def test_create_and_spin(self):
        code, out = self._main('--create', 'Lunch', '--items', 'Pizza, Sushi')
        self.assertEqual(code, 0)
        state = read_state(self.tmp)
        self.assertEqual(state['lists'][-1]['items'], ['Pizza', 'Sushi'])
        self.assertEqual(state['activeListId'], state['lists'][-1]['id'])
        code, out = self._main('--spin', '--seed', '3')
        self.assertEqual(code, 0)
        self.assertIn('Winner:', out)

    def test_create_from_file(self):
        with open('items.txt', 'w') as f:
            f.write('- one\n- two\n')
        code, _ = self._main('--create', 'Nums', '--items-file', 'items.txt')
        self.assertEqual(code, 0)
        self.assertEqual(read_state(self.tmp)['lists'][-1]['items'], ['one', 'two'])

    def test_create_without_items_fails(self):
        code, out = self._main('--create', 'Empty')
        self.assertEqual(code, 1)
        self.assertIn('at least one item', out)

    def test_delete_only_list_rejected(self):
        write_state(self.tmp)
        code, out = self._main('--delete', 'lunch')
        self.assertEqual(code, 1)
        self.assertIn("can't be deleted", out)
        self.assertEqual(len(read_state(self.tmp)['lists']), 1)

    def test_select_and_settings(self):
        code, _ = self._main('--select', 'dice', '--remove-after-pick', 'on', '--duration', '20')
        self.assertEqual(code, 0)
        state = read_state(self.tmp)
        self.assertEqual(state['activeListId'], 'dice')
        self.assertTrue(state['removeAfterPick'])
        self.assertEqual(state['animationDuration'], 10)

    def test_select_unknown(self):
        code, out = self._main('--select', 'nope')
        self.assertEqual(code, 1)
        self.assertIn("No list matches 'nope'", out)

    def test_remove_and_restore(self):
        write_state(self.tmp)
        self._main('--remove-item', 'Sushi')
        self.assertEqual(read_state(self.tmp)['lists'][0]['items'], ['Pizza', 'Tacos'])
        self._main('--restore')
        self.assertEqual(read_state(self.tmp)['lists'][0]['items'], ['Pizza', 'Sushi', 'Tacos'])

    def test_rename(self):
        write_state(self.tmp)
        code, _ = self._main('--rename', 'lunch', 'Dinner')
        self.assertEqual(code, 0)
        self.assertEqual(read_state(self.tmp)['lists'][0]['name'], 'Dinner')

    def test_spin_empty_list_fails(self):
        write_state(self.tmp, lists=[dict(USER_LIST, items=[])])
        code, out = self._main('--spin')
        self.assertEqual(code, 1)
        self.assertIn('no items left', out)

    def test_count_bounds(self):
        self.assertEqual(self._main('--spin', '--count', '0')[0], 1)
        self.assertEqual(self._main('--spin', '--count', '11')[0], 1)

    def test_multi_spin(self):
        write_state(self.tmp, removeAfterPick=True)
        code, out = self._main('--spin', '--count', '3')
        self.assertEqual(code, 0)
        self.assertEqual(out.count('Winner:'), 3)
        self.assertEqual(read_state(self.tmp)['lists'][0]['items'], [])

    def test_history_export_import(self):
        write_state(self.tmp)
        self._main('--spin')
        export = os.path.join(self.tmp, 'export.json')
        code, _ = self._main('--export-history', export)
        self.assertEqual(code, 0)
        os.remove(os.path.join(self.tmp, '.wheelspin_history.json'))
        code, out = self._main('--import-history', export)
        self.assertEqual(code, 0)
        self.assertIn('Imported 1 history entries', out)

    def test_import_bad_history(self):
        code, out = self._main('--import-history', 'missing.json')
        self.assertEqual(code, 1)

    def test_bad_config(self):
        with open('config.json', 'w') as f:
            f.write('{nope')
        code, out = self._main('--lists')
        self.assertEqual(code, 1)
        self.assertIn('Error parsing config file', out)

    def test_interactive_when_no_action(self):
        with patch('builtins.input', side_effect=['q']):
            code, out = self._main()
        self.assertEqual(code, 0)
        self.assertIn('Thanks for spinning', out)

    def test_keyboard_interrupt(self):
        with patch('builtins.input', side_effect=KeyboardInterrupt):
            code, out = self._main()
        self.assertEqual(code, 0)
        self.assertIn('Goodbye', out)


if __name__ == '__main__':
    unittest.main()
