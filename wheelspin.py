#!/usr/bin/env python3
"""
wheelspin - Wheel of Names for the terminal
Keep named lists of items and spin a wheel to pick one of them at random,
optionally removing each winner for elimination-style draws.
"""

import argparse
import json
import logging
import os
import re
import sys
from typing import Callable, Dict, List, Optional

from colorama import init, Fore, Style

from picker.notifier import WinnerNotifier
from picker.repositories import HistoryRepository, StateRepository
from picker.services import (
    CallbackScheduler, HistoryService, ListStore, PickerSession, RandomSelector,
)
from picker.services.picker_session import MAX_SEQUENCE, STOP_COMPLETED, STOP_LIST_EMPTY
from picker.services.selector import rotation_for, segment_at

# Initialize colorama for cross-platform colored terminal output
init(autoreset=True)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(level: str = 'WARNING') -> logging.Logger:
    """Configure the root wheelspin logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to WARNING so normal use is quiet.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, str(level).upper(), logging.WARNING)
    logger = logging.getLogger('wheelspin')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


# Module-level logger used throughout wheelspin.py
logger = setup_logging()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG: Dict = {
    'state_file': '.wheelspin_state.json',
    'history_file': '.wheelspin_history.json',
    'max_history_size': 50,
    'spin_pause_seconds': 1.0,
    'webhook_url': None,
    'log_level': 'WARNING',
}

_ENV_OVERRIDES = {
    'WHEELSPIN_STATE_FILE': 'state_file',
    'WHEELSPIN_HISTORY_FILE': 'history_file',
    'WHEELSPIN_WEBHOOK_URL': 'webhook_url',
    'WHEELSPIN_LOG_LEVEL': 'log_level',
}


class ConfigError(Exception):
    """Raised when the config file exists but cannot be used."""


def load_config(config_path: Optional[str] = 'config.json') -> Dict:
    """Load configuration from a JSON file with environment variable support.

    A missing file is not an error: every key has a default.  Environment
    variables take precedence over config file values:
    - WHEELSPIN_STATE_FILE overrides state_file
    - WHEELSPIN_HISTORY_FILE overrides history_file
    - WHEELSPIN_WEBHOOK_URL overrides webhook_url
    - WHEELSPIN_LOG_LEVEL overrides log_level

    Raises:
        ConfigError: If the file is not valid JSON or not a JSON object.
    """
    config = dict(DEFAULT_CONFIG)
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(f"Error parsing config file '{config_path}': {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file '{config_path}' must contain a JSON object")
        config.update(loaded)

    for env_name, key in _ENV_OVERRIDES.items():
        if os.getenv(env_name):
            config[key] = os.getenv(env_name)

    try:
        config['max_history_size'] = max(1, int(config['max_history_size']))
        config['spin_pause_seconds'] = max(0.0, float(config['spin_pause_seconds']))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting in config: {e}") from e
    return config


# ---------------------------------------------------------------------------
# Text import
# ---------------------------------------------------------------------------

_BULLET_RE = re.compile(r'^\s*(?:[-*•]|\d+\.)\s+')


def parse_items_text(text: str) -> List[str]:
    """Split pasted text into clean list items.

    A single line containing commas is split on the commas.  Otherwise the
    text is split into lines and leading bullet markers (``-``, ``*``, ``•``,
    ``1.``) are stripped.  Blank entries are dropped.
    """
    if not text:
        return []
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    if '\n' not in text.strip() and ',' in text:
        parts = text.split(',')
    else:
        parts = [_BULLET_RE.sub('', line) for line in text.split('\n')]
    return [p.strip() for p in parts if p.strip()]


# ---------------------------------------------------------------------------
# Picker
# ---------------------------------------------------------------------------

class WheelPicker:
    """Main wheel picker application"""

    FRAME_INTERVAL = 0.1  # seconds between animation frames
    FULL_TURNS = 5

    def __init__(self, config_path: Optional[str] = 'config.json',
                 config: Optional[Dict] = None, seed: Optional[int] = None,
                 random_source: Optional[Callable[[], float]] = None,
                 animate: bool = True, scheduler: Optional[CallbackScheduler] = None,
                 out=None):
        self._log = logging.getLogger('wheelspin.picker')
        self.config = config if config is not None else load_config(config_path)

        # Re-apply log level from config (allows "log_level": "DEBUG" in config.json)
        setup_logging(self.config.get('log_level', 'WARNING'))

        self.animate = animate
        self.out = out or sys.stdout
        self.rotation = 0.0
        self._save_failed = False

        self.state_repo = StateRepository(self.config['state_file'])
        state = self.state_repo.load()
        self.store = ListStore(state, on_change=self._persist)
        if self.state_repo.migrated:
            self._persist(self.store.state)

        self.history_repo = HistoryRepository(self.config['history_file'],
                                              max_size=self.config['max_history_size'])
        self.history = HistoryService(self.history_repo)
        self.notifier = WinnerNotifier(self.config.get('webhook_url'))

        self.scheduler = scheduler or CallbackScheduler()
        self.session = PickerSession(
            self.store,
            selector=RandomSelector(random_source=random_source, seed=seed),
            scheduler=self.scheduler,
            history=self.history,
            on_spin_start=self._on_spin_start,
            on_winner=self._on_winner,
            on_sequence_end=self._on_sequence_end,
            spin_pause=self.config['spin_pause_seconds'] if animate else 0.0,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, state: Dict) -> None:
        if self.state_repo.save(state):
            self._save_failed = False
        elif not self._save_failed:
            # Report once; the in-memory state stays usable.
            self._save_failed = True
            self._print(f"{Fore.YELLOW}Warning: could not save to {self.state_repo.path}; "
                        f"changes will last for this session only.")

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    def _print(self, text: str = '', end: str = '\n') -> None:
        print(text, end=end, file=self.out, flush=True)

    def _info(self, text: str) -> None:
        self._print(f"{Fore.YELLOW}{text}")

    # ------------------------------------------------------------------
    # Session callbacks
    # ------------------------------------------------------------------

    def _on_spin_start(self, result: Dict, duration: float) -> None:
        items = self.store.items(result['list_id']) or []
        start = self.rotation
        end = rotation_for(start, result['target_angle'], self.FULL_TURNS)
        self.rotation = end % 360

        def complete(spin_id=result['spin_id']):
            self.session.complete_spin(spin_id)

        if not self.animate:
            self.scheduler.call_later(0, complete)
            return

        frames = max(1, int(duration / self.FRAME_INTERVAL))
        for frame in range(1, frames + 1):
            progress = frame / frames
            eased = 1 - (1 - progress) ** 3
            rotation = start + (end - start) * eased
            label = items[segment_at(rotation, len(items))]
            self.scheduler.call_later(frame * self.FRAME_INTERVAL,
                                      lambda text=label: self._draw_frame(text))
        self.scheduler.call_later(max(duration, frames * self.FRAME_INTERVAL),
                                  complete)

    def _draw_frame(self, label: str) -> None:
        self._print(f"\r{Fore.CYAN}▼ {label:<40}", end='')

    def _on_winner(self, winner: str) -> None:
        if self.animate:
            self._print()
        active = self.store.active_list
        remaining = len(active['items'])
        self._print(f"{Fore.GREEN}{Style.BRIGHT}\U0001F3C6 Winner: {winner}")
        if self.store.remove_after_pick:
            self._print(f"{Fore.WHITE}   Removed from '{active['name']}' ({remaining} left)")
        if self.notifier.enabled:
            self.notifier.notify_winner(winner, active,
                                        remaining if self.store.remove_after_pick else None)

    def _on_sequence_end(self, reason: str) -> None:
        if reason == STOP_COMPLETED:
            return
        if self.animate:
            self._print()
        if reason == STOP_LIST_EMPTY:
            self._info("The list is empty - restore it or pick another list to keep spinning.")
        else:
            self._info(f"Spinning stopped ({reason.replace('_', ' ')}).")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def spin(self, count: int = 1) -> List[str]:
        """Run *count* consecutive spins on the active list and return the winners."""
        already = len(self.session.winners)
        if self.session.start_sequence(count) is None:
            if self.session.last_rejection == STOP_LIST_EMPTY:
                return []
            if self.session.last_rejection:
                self._info(f"Can't spin: {self.session.last_rejection}")
            return []
        self.scheduler.run_until_idle()
        return self.session.winners[already:]

    def find_list(self, ref: str) -> Optional[Dict]:
        """Look up a list by id, then by case-insensitive name, then by 1-based position."""
        lists = self.store.lists
        for lst in lists:
            if lst['id'] == ref:
                return lst
        for lst in lists:
            if lst['name'].lower() == ref.strip().lower():
                return lst
        if ref.isdigit() and 1 <= int(ref) <= len(lists):
            return lists[int(ref) - 1]
        return None

    def show_lists(self) -> None:
        """Display all lists, marking the active one."""
        self._print(f"\n{Fore.CYAN}{Style.BRIGHT}Your lists")
        self._print(f"{Fore.WHITE}{'=' * 40}")
        for i, lst in enumerate(self.store.lists, 1):
            marker = f"{Fore.GREEN}*" if lst['id'] == self.store.active_list_id else ' '
            builtin = f" {Fore.MAGENTA}(built-in)" if lst.get('isDefault') else ''
            removed = self.store.removed_count(lst['id'])
            removed_note = f" {Fore.YELLOW}[{removed} removed]" if removed else ''
            self._print(f"{marker} {Fore.YELLOW}{i}. {Fore.WHITE}{lst['name']} "
                        f"({len(lst['items'])} items){builtin}{removed_note}")
            self._print(f"     {Fore.BLUE}id: {lst['id']}")

    def show_active_list(self) -> None:
        """Display the items of the active list and the current settings."""
        active = self.store.active_list
        self._print(f"\n{Fore.CYAN}{Style.BRIGHT}{active['name']}")
        self._print(f"{Fore.WHITE}{'=' * 40}")
        if not active['items']:
            self._info("(empty)")
        for i, item in enumerate(active['items'], 1):
            self._print(f"{Fore.YELLOW}{i:>3}. {Fore.WHITE}{item}")
        mode = 'on' if self.store.remove_after_pick else 'off'
        self._print(f"\n{Fore.WHITE}Remove after pick: {mode}   "
                    f"Spin duration: {self.store.animation_duration}s")

    def show_history(self, count: int = 10) -> None:
        entries = self.history.recent(count)
        if not entries:
            self._info("No winners yet.")
            return
        self._print(f"\n{Fore.CYAN}{Style.BRIGHT}Recent winners")
        self._print(f"{Fore.WHITE}{'=' * 40}")
        for entry in entries:
            where = f" from {entry['list_name']}" if entry.get('list_name') else ''
            when = f" {Fore.BLUE}{entry['picked_at']}" if entry.get('picked_at') else ''
            self._print(f"{Fore.GREEN}{entry['item']}{Fore.WHITE}{where}{when}")

    def create_list_interactive(self) -> None:
        name = input(f"{Fore.GREEN}List name: {Fore.WHITE}").strip()
        self._print(f"{Fore.WHITE}Enter items (comma-separated, or one per line; blank line to finish):")
        lines = []
        while True:
            line = input()
            if not line.strip():
                break
            lines.append(line)
        created = self.store.create_list(name, parse_items_text('\n'.join(lines)))
        if created:
            self._print(f"{Fore.GREEN}Created '{created['name']}' with {len(created['items'])} items.")
        else:
            self._info("A list needs a name and at least one item.")

    def interactive_mode(self):
        """Run in interactive mode"""
        while True:
            active = self.store.active_list
            self._print(f"\n{Fore.CYAN}{Style.BRIGHT}wheelspin - {active['name']} "
                        f"({len(active['items'])} items)")
            self._print(f"{Fore.WHITE}{'=' * 40}")
            self._print(f"{Fore.YELLOW}1. {Fore.WHITE}Spin the wheel")
            self._print(f"{Fore.YELLOW}2. {Fore.WHITE}Spin several times")
            self._print(f"{Fore.YELLOW}3. {Fore.WHITE}Show items")
            self._print(f"{Fore.YELLOW}4. {Fore.WHITE}Switch list")
            self._print(f"{Fore.YELLOW}5. {Fore.WHITE}Create a list")
            self._print(f"{Fore.YELLOW}6. {Fore.WHITE}Delete a list")
            self._print(f"{Fore.YELLOW}7. {Fore.WHITE}Restore removed items")
            self._print(f"{Fore.YELLOW}8. {Fore.WHITE}Toggle remove after pick "
                        f"(now {'on' if self.store.remove_after_pick else 'off'})")
            self._print(f"{Fore.YELLOW}9. {Fore.WHITE}Set spin duration")
            self._print(f"{Fore.YELLOW}h. {Fore.WHITE}Recent winners")
            self._print(f"{Fore.YELLOW}q. {Fore.WHITE}Quit")
            self._print(f"{Fore.WHITE}{'=' * 40}")

            choice = input(f"\n{Fore.GREEN}Enter your choice: {Fore.WHITE}").strip().lower()

            if choice == 'q':
                self._print(f"\n{Fore.CYAN}Thanks for spinning! \U0001F3A1")
                break
            elif choice == '1':
                self.spin()
            elif choice == '2':
                raw = input(f"{Fore.GREEN}How many spins (1-{MAX_SEQUENCE})? {Fore.WHITE}").strip()
                if raw.isdigit() and 1 <= int(raw) <= MAX_SEQUENCE:
                    self.spin(int(raw))
                else:
                    self._print(f"{Fore.RED}Please enter a number from 1 to {MAX_SEQUENCE}.")
            elif choice == '3':
                self.show_active_list()
            elif choice == '4':
                self.show_lists()
                lst = self.find_list(input(f"{Fore.GREEN}List number, name or id: {Fore.WHITE}"))
                if lst and self.store.select_list(lst['id']):
                    self._print(f"{Fore.GREEN}Now spinning '{lst['name']}'.")
                else:
                    self._info("No such list.")
            elif choice == '5':
                self.create_list_interactive()
            elif choice == '6':
                self.show_lists()
                lst = self.find_list(input(f"{Fore.GREEN}List to delete: {Fore.WHITE}"))
                if lst is None:
                    self._info("No such list.")
                elif self.store.delete_list(lst['id']):
                    self._print(f"{Fore.GREEN}Deleted '{lst['name']}'.")
                else:
                    self._info("You can't delete your only list.")
            elif choice == '7':
                self.store.restore_list(self.store.active_list_id)
                self._print(f"{Fore.GREEN}Restored '{active['name']}'.")
            elif choice == '8':
                self.store.set_remove_after_pick(not self.store.remove_after_pick)
            elif choice == '9':
                raw = input(f"{Fore.GREEN}Seconds (1-10): {Fore.WHITE}").strip()
                try:
                    value = self.store.set_animation_duration(float(raw))
                except ValueError:
                    value = None
                if value is None:
                    self._print(f"{Fore.RED}Please enter a number.")
                else:
                    self._print(f"{Fore.GREEN}Spin duration set to {value}s.")
            elif choice == 'h':
                self.show_history()
            else:
                self._print(f"{Fore.RED}Invalid choice. Please try again.")


def _read_items(args) -> Optional[List[str]]:
    if args.items_file:
        try:
            with open(args.items_file, 'r', encoding='utf-8') as f:
                return parse_items_text(f.read())
        except IOError as e:
            print(f"{Fore.RED}Error reading {args.items_file}: {e}")
            sys.exit(1)
    if args.items:
        return parse_items_text(args.items)
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='wheelspin - spin a wheel to pick a random item from your lists',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wheelspin                                  # Run in interactive mode
  wheelspin --spin                           # Spin the active list and exit
  wheelspin --spin --count 3 --no-animation  # Three quick picks
  wheelspin --create Lunch --items "Pizza, Sushi, Tacos"
  wheelspin --select dinner --remove-after-pick on --spin
        """
    )
    parser.add_argument('--config', '-c', default='config.json',
                        help='Path to config file (default: config.json)')
    parser.add_argument('--state-file', metavar='FILE',
                        help='Path to the state file (overrides config)')
    parser.add_argument('--log-level', metavar='LEVEL',
                        help='Log level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--lists', '-l', action='store_true',
                        help='List all lists and exit')
    parser.add_argument('--show', action='store_true',
                        help='Show the items of the active list')
    parser.add_argument('--select', metavar='LIST',
                        help='Make LIST (id, name or number) the active list')
    parser.add_argument('--create', metavar='NAME',
                        help='Create a list (use with --items or --items-file)')
    parser.add_argument('--items', metavar='TEXT',
                        help='Items for --create, comma- or newline-separated')
    parser.add_argument('--items-file', metavar='FILE',
                        help='Read items for --create from FILE')
    parser.add_argument('--rename', nargs=2, metavar=('LIST', 'NAME'),
                        help='Rename a list')
    parser.add_argument('--delete', metavar='LIST',
                        help='Delete a list (the last list cannot be deleted)')
    parser.add_argument('--remove-item', metavar='ITEM',
                        help='Remove ITEM from the active list')
    parser.add_argument('--restore', action='store_true',
                        help='Restore removed items of the active list')
    parser.add_argument('--remove-after-pick', choices=('on', 'off'),
                        help='Remove each winner from the list')
    parser.add_argument('--duration', type=float, metavar='SECONDS',
                        help='Spin animation length in seconds (1-10)')
    parser.add_argument('--spin', '-s', action='store_true',
                        help='Spin the wheel and exit (non-interactive)')
    parser.add_argument('--count', type=int, default=1, metavar='N',
                        help=f'Number of consecutive spins (default: 1, max: {MAX_SEQUENCE})')
    parser.add_argument('--no-animation', action='store_true',
                        help='Pick instantly without the spinning animation')
    parser.add_argument('--seed', type=int,
                        help='Seed the random generator (repeatable picks)')
    parser.add_argument('--history', action='store_true',
                        help='Show recent winners and exit')
    parser.add_argument('--export-history', metavar='FILE',
                        help='Export winner history to a file')
    parser.add_argument('--import-history', metavar='FILE',
                        help='Import winner history from a file')
    return parser


def run(args, picker: WheelPicker) -> int:
    """Apply the one-shot actions in *args*.  Returns the process exit code."""
    acted = False

    if args.export_history:
        acted = True
        if not picker.history.export(args.export_history):
            print(f"{Fore.RED}Error exporting history to {args.export_history}")
            return 1
        print(f"{Fore.GREEN}History exported to {args.export_history}")

    if args.import_history:
        acted = True
        loaded = picker.history.import_from(args.import_history)
        if loaded is None:
            print(f"{Fore.RED}Invalid history file: {args.import_history}")
            return 1
        print(f"{Fore.GREEN}Imported {loaded} history entries from {args.import_history}")

    if args.create:
        acted = True
        created = picker.store.create_list(args.create, _read_items(args) or [])
        if created is None:
            print(f"{Fore.RED}A list needs a name and at least one item (use --items).")
            return 1
        print(f"{Fore.GREEN}Created '{created['name']}' with {len(created['items'])} items "
              f"(id: {created['id']}).")

    if args.rename:
        acted = True
        lst = picker.find_list(args.rename[0])
        if lst is None or not picker.store.rename_list(lst['id'], args.rename[1]):
            print(f"{Fore.RED}Could not rename '{args.rename[0]}'.")
            return 1
        print(f"{Fore.GREEN}Renamed '{lst['name']}' to '{args.rename[1].strip()}'.")

    if args.delete:
        acted = True
        lst = picker.find_list(args.delete)
        if lst is None:
            print(f"{Fore.RED}No list matches '{args.delete}'.")
            return 1
        if not picker.store.delete_list(lst['id']):
            print(f"{Fore.YELLOW}'{lst['name']}' is your only list and can't be deleted.")
            return 1
        print(f"{Fore.GREEN}Deleted '{lst['name']}'.")

    if args.select:
        acted = True
        lst = picker.find_list(args.select)
        if lst is None or not picker.store.select_list(lst['id']):
            print(f"{Fore.RED}No list matches '{args.select}'.")
            return 1
        print(f"{Fore.GREEN}Active list: {lst['name']}")

    if args.remove_item:
        acted = True
        if not picker.store.remove_item(picker.store.active_list_id, args.remove_item):
            print(f"{Fore.YELLOW}'{args.remove_item}' is not in the active list.")
        else:
            print(f"{Fore.GREEN}Removed '{args.remove_item}'.")

    if args.restore:
        acted = True
        picker.store.restore_list(picker.store.active_list_id)
        print(f"{Fore.GREEN}Restored '{picker.store.active_list['name']}'.")

    if args.remove_after_pick:
        acted = True
        picker.store.set_remove_after_pick(args.remove_after_pick == 'on')
        print(f"{Fore.GREEN}Remove after pick: {args.remove_after_pick}")

    if args.duration is not None:
        acted = True
        value = picker.store.set_animation_duration(args.duration)
        print(f"{Fore.GREEN}Spin duration: {value}s")

    if args.lists:
        acted = True
        picker.show_lists()

    if args.show:
        acted = True
        picker.show_active_list()

    if args.history:
        acted = True
        picker.show_history()

    if args.spin:
        acted = True
        if not picker.store.active_list['items']:
            print(f"{Fore.RED}'{picker.store.active_list['name']}' has no items left. "
                  f"Use --restore or add a list.")
            return 1
        if args.count > 1:
            print(f"{Fore.CYAN}Spinning {args.count} times...\n")
        winners = picker.spin(args.count)
        if not winners:
            return 1

    if not acted:
        picker.interactive_mode()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.count < 1 or args.count > MAX_SEQUENCE:
        print(f"{Fore.RED}Error: --count must be between 1 and {MAX_SEQUENCE}")
        return 1

    print(f"{Fore.CYAN}{Style.BRIGHT}wheelspin{Style.RESET_ALL} {Fore.WHITE}- spin to pick\n")

    try:
        config = load_config(args.config)
        if args.state_file:
            config['state_file'] = args.state_file
        if args.log_level:
            config['log_level'] = args.log_level
        picker = WheelPicker(config=config, seed=args.seed,
                             animate=not args.no_animation and sys.stdout.isatty())
        return run(args, picker)
    except ConfigError as e:
        print(f"{Fore.RED}{e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        print(f"\n\n{Fore.YELLOW}Interrupted by user. Goodbye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
