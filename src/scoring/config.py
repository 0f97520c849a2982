"""
Format settings defaults and YAML loading.
"""
import logging
import os
from typing import Dict

import yaml

from .errors import InvalidInputError
from .formats import SPORT_TYPES
from .standings import RANKING_METHODS

logger = logging.getLogger(__name__)


def get_default_settings(sport_type: str) -> Dict:
    """Default settings dict for a sport type."""
    sport_class = SPORT_TYPES.get(sport_type)
    if sport_class is None:
        raise InvalidInputError(f"Unknown sport type: {sport_type}")
    return sport_class.settings_class().to_dict()


def validate_settings(sport_type: str, settings: Dict) -> Dict:
    """Drop unknown keys and reject values the core cannot work with."""
    defaults = get_default_settings(sport_type)
    unknown = set(settings) - set(defaults)
    if unknown:
        logger.warning("Ignoring unknown %s settings: %s", sport_type, ', '.join(sorted(unknown)))
    cleaned = {key: settings[key] for key in defaults if key in settings}

    if 'ranking_method' in cleaned and cleaned['ranking_method'] not in RANKING_METHODS:
        raise InvalidInputError(f"Unknown ranking method: {cleaned['ranking_method']}")
    if 'block_count' in cleaned and int(cleaned['block_count']) < 1:
        raise InvalidInputError("block_count must be at least 1")
    if 'advancing_teams' in cleaned and int(cleaned['advancing_teams']) < 1:
        raise InvalidInputError("advancing_teams must be at least 1")
    return cleaned


def load_settings(path: str, sport_type: str):
    """Load format settings from YAML, merged over the defaults."""
    defaults = get_default_settings(sport_type)
    settings_class = SPORT_TYPES[sport_type].settings_class
    if not os.path.exists(path):
        return settings_class(**defaults)
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return settings_class(**defaults)
    return settings_class(**{**defaults, **validate_settings(sport_type, data)})


def save_settings(path: str, settings):
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(settings.to_dict(), f, default_flow_style=False)
