"""Built-in lists and default settings for a fresh wheelspin profile."""
import copy
from typing import Dict, List

# Bump when the built-in set changes; stored documents with a lower version
# get their built-in lists replaced on load.
SCHEMA_VERSION = 1

DEFAULT_PRESETS: List[Dict] = [
    {
        'id': 'rotmg-classes',
        'name': 'RotMG Classes',
        'items': [
            'Rogue', 'Archer', 'Assassin', 'Huntress', 'Trickster',
            'Bard', 'Summoner', 'Druid', 'Warrior', 'Knight', 'Paladin',
            'Samurai', 'Kensei', 'Wizard', 'Priest', 'Necromancer',
            'Mystic', 'Sorcerer', 'Ninja',
        ],
        'isDefault': True,
    },
    {
        'id': 'dinner',
        'name': "What's for Dinner?",
        'items': ['Pizza', 'Sushi', 'Burgers', 'Salad', 'Tacos', 'Pasta', 'Steak', 'Curry'],
        'isDefault': True,
    },
    {
        'id': 'yes-no',
        'name': 'Yes or No',
        'items': ['Yes', 'No'],
        'isDefault': True,
    },
    {
        'id': 'dice',
        'name': 'Roll a Die',
        'items': ['1', '2', '3', '4', '5', '6'],
        'isDefault': True,
    },
]


def builtin_lists() -> List[Dict]:
    """Return fresh copies of the built-in lists with ``originalItems`` filled in."""
    lists = []
    for preset in DEFAULT_PRESETS:
        entry = copy.deepcopy(preset)
        entry['originalItems'] = list(entry['items'])
        lists.append(entry)
    return lists


# Spin animation bounds (seconds).  Only the presentation layer uses the value,
# but it is persisted with the rest of the state.
MIN_ANIMATION_DURATION = 1
MAX_ANIMATION_DURATION = 10
DEFAULT_ANIMATION_DURATION = 3


def clamp_duration(seconds) -> float:
    """Clamp *seconds* into the allowed animation range.

    Non-numeric values (including ``bool``) fall back to the default duration.
    """
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return DEFAULT_ANIMATION_DURATION
    if seconds != seconds:  # NaN
        return DEFAULT_ANIMATION_DURATION
    return max(MIN_ANIMATION_DURATION, min(MAX_ANIMATION_DURATION, seconds))
