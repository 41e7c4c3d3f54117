"""
Centralized configuration manager.
Loads the packaged YAML defaults, merges an optional user file over
them, and provides typed access with defaults.
"""

import os
import yaml
import logging

logger = logging.getLogger(__name__)

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_PACKAGE_DIR, "config")
DEFAULT_CONFIG_PATH = os.path.join(_CONFIG_DIR, "config.yaml")

# Schema: sections and their expected field types
_CONFIG_SCHEMA = {
    "session": {
        "max_hands": int,
        "buffer_capacity": int,
        "sequence_length": int,
        "async_inference": bool,
    },
    "sampler": {
        "target_length": int,
        "window_size": int,
        "min_ready_frames": int,
    },
    "smoothing": {
        "history_size": int,
        "weights": list,
    },
    "feedback": {
        "steadiness_threshold": float,
        "visibility_threshold": float,
        "sign_corrections": dict,
    },
    "progress": {
        "practice_threshold": float,
        "learned_threshold": float,
        "test_threshold": float,
        "accuracy_window": int,
    },
    "models": {
        "model_dir": str,
        "static_model": str,
        "sequence_model": str,
        "device": str,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into a copy of ``base``; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = (_deep_merge(current, value)
                       if isinstance(current, dict) and isinstance(value, dict) else value)
    return merged


def _read_yaml(path: str) -> dict:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is %s, not a mapping",
                       path, type(data).__name__)
        return {}
    return data


def _type_problem(value, expected) -> str:
    """Describe why ``value`` does not fit ``expected`` ('' when it does)."""
    if value is None:
        return ""
    is_bool = isinstance(value, bool)
    if expected is float:
        ok = isinstance(value, (int, float)) and not is_bool
    elif expected is int:
        ok = isinstance(value, int) and not is_bool
    else:
        ok = isinstance(value, expected)
    if ok:
        return ""
    return "expected %s, got %s (%r)" % (expected.__name__, type(value).__name__, value)


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path=None, defaults_path=DEFAULT_CONFIG_PATH):
        """Load packaged defaults, then merge the user config over them."""
        try:
            self._data = _read_yaml(defaults_path)
            logger.debug("Loaded default config from %s", defaults_path)
        except FileNotFoundError:
            logger.warning("Default config not found: %s", defaults_path)
            self._data = {}

        if config_path:
            try:
                self._data = _deep_merge(self._data, _read_yaml(config_path))
                logger.info("Loaded config from %s", config_path)
            except FileNotFoundError:
                logger.warning("Config file not found: %s, using defaults", config_path)

        self._validate()
        return self

    def _validate(self):
        """Check known fields against the schema; problems are only logged.

        Returns:
            List of warning strings (empty when the config is clean)
        """
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if section is None:
                warnings.append("Missing config section: '%s'" % section_name)
            elif not isinstance(section, dict):
                warnings.append("Section '%s' should be a mapping, got %s"
                                % (section_name, type(section).__name__))
            else:
                for field_name, expected in fields.items():
                    problem = _type_problem(section.get(field_name), expected)
                    if problem:
                        warnings.append("%s.%s: %s" % (section_name, field_name, problem))

        for w in warnings:
            logger.warning("Config validation: %s", w)
        if not warnings:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'session.max_hands'."""
        value = self._data
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section) or {}

    @property
    def logging(self) -> dict:
        return self.get_section("logging")

    @property
    def session(self) -> dict:
        return self.get_section("session")

    @property
    def sampler(self) -> dict:
        return self.get_section("sampler")

    @property
    def smoothing(self) -> dict:
        return self.get_section("smoothing")

    @property
    def feedback(self) -> dict:
        return self.get_section("feedback")

    @property
    def progress(self) -> dict:
        return self.get_section("progress")

    @property
    def models(self) -> dict:
        return self.get_section("models")

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
