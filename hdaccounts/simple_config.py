from __future__ import annotations
from copy import deepcopy
import json
import os
import stat
import threading
from typing import Any, Callable, cast, Type, TypeVar

from .logs import logs


logger = logs.get_logger("config")


CONFIG_FILE_NAME = "config"

T = TypeVar('T')


class SimpleConfig:
    """
    The SimpleConfig class is responsible for handling operations involving
    configuration files.

    There are two different sources of possible configuration values:
        1. Explicit options, usually from the command line of the hosting application.
        2. User configuration (the `config` file in the configuration directory)
    They are taken in order (1. overrides config options set in 2.)
    """

    def __init__(self, options: dict[str, Any]|None=None,
            read_user_config_function: Callable[[str], dict[str, Any]]|None=None,
            path: str|None=None) -> None:
        if options is None:
            options = {}

        # This lock needs to be acquired for updating and reading the config in
        # a thread-safe way.
        self.lock = threading.RLock()

        # The following function is there for dependency injection when testing.
        if read_user_config_function is None:
            read_user_config_function = read_user_config

        self.cmdline_options = deepcopy(options)
        self.path = path
        self.user_config: dict[str, Any] = {}
        if path is not None:
            self.user_config = read_user_config_function(path)

    def file_path(self, file_name: str) -> str|None:
        if self.path:
            return os.path.join(self.path, file_name)
        return None

    def set_key(self, key: str, value: Any, save: bool=True) -> None:
        if not self.is_modifiable(key):
            logger.warning("Not changing config key '%s' set on the command line", key)
            return
        with self.lock:
            if value is not None:
                self.user_config[key] = value
            else:
                self.user_config.pop(key, None)
            if save:
                self.save_user_config()

    def get(self, key: str, default: Any=None) -> Any|None:
        with self.lock:
            out = self.cmdline_options.get(key)
            if out is None:
                out = self.user_config.get(key, default)
        return out

    def get_explicit_type(self, return_type: Type[T], key: str, default: T) -> T:
        with self.lock:
            value: T|None = self.cmdline_options.get(key)
            if value is None:
                value = cast(T, self.user_config.get(key, default))
        if not isinstance(value, return_type):
            raise TypeError("config key '{}' should be {}, got {!r}".format(key,
                return_type.__name__, value))
        return value

    def is_modifiable(self, key: str) -> bool:
        return key not in self.cmdline_options

    def save_user_config(self) -> None:
        path = self.file_path(CONFIG_FILE_NAME)
        if path is None:
            return
        s = json.dumps(self.user_config, indent=4, sort_keys=True)
        with open(path, "w", encoding='utf-8') as f:
            f.write(s)
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)

    def get_network(self) -> str:
        return self.get_explicit_type(str, 'network', 'mainnet')

    def get_log_level(self) -> str:
        return self.get_explicit_type(str, 'log_level', 'warning')

    def get_log_path(self) -> str|None:
        return cast("str|None", self.get('log_path'))


def read_user_config(path: str) -> dict[str, Any]:
    """Parse and return the user config settings as a dictionary."""
    if not path:
        return {}
    config_path = os.path.join(path, CONFIG_FILE_NAME)
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding='utf-8') as f:
            data = f.read()
        result = json.loads(data)
    except Exception:
        logger.exception("Cannot read config file %s.", config_path)
        return {}
    if not type(result) is dict:
        return {}
    return result
