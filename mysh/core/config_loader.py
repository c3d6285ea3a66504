"""
mysh Configuration Loader

Provides:
- JSON configuration file loading
- Default value handling
- Runtime configuration updates
- Type-safe access to configuration values

Author: mysh developers
Version: 1.0.0
"""

import json
import threading
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Optional

from mysh.exceptions import ConfigError


@dataclass
class ShellConfig:
    """Interactive loop settings."""
    prompt: str = "mysh$ "
    exit_command: str = "exit"


@dataclass
class JobsConfig:
    """Background job table settings."""
    capacity: int = 128
    launch_delay: float = 0.01  # seconds slept before printing "[n] pid"


@dataclass
class ServerConfig:
    """Broadcast server settings."""
    host: str = "0.0.0.0"
    backlog: int = 5
    max_clients: int = 10
    read_size: int = 1024
    outbox_size: int = 64
    control_token: str = "\\connected"
    join_timeout: float = 2.0


@dataclass
class ClientConfig:
    """Settings for the send/start-client builtins."""
    poll_interval: float = 0.1
    read_size: int = 1024


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "WARNING"
    log_file: Optional[str] = None
    console_output: bool = True
    use_colors: bool = True


@dataclass
class Config:
    """
    Main configuration container.

    Holds all configuration settings for the shell.
    """
    shell: ShellConfig = field(default_factory=ShellConfig)
    jobs: JobsConfig = field(default_factory=JobsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader:
    """
    Configuration loader and manager.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('config.json')
        >>> print(config.server.max_clients)
        10
    """

    _instance: Optional['ConfigLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigLoader':
        """Singleton pattern for configuration access."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._config = Config()
                cls._instance._loaded = False
            return cls._instance

    def load(self, config_path: str) -> Config:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            ConfigError: If the file cannot be loaded or parsed
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                path=config_path
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in configuration file: {e}",
                path=config_path
            )
        except OSError as e:
            raise ConfigError(
                f"Cannot read configuration file: {e}",
                path=config_path
            )

        if not isinstance(data, dict):
            raise ConfigError(
                "Configuration root must be an object",
                path=config_path
            )

        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into a Config object."""
        config = Config()

        for section in fields(Config):
            if section.name not in data:
                continue

            section_data = data[section.name]
            if not isinstance(section_data, dict):
                raise ConfigError(f"Section '{section.name}' must be an object")

            current = getattr(config, section.name)
            known = {f.name for f in fields(current)}
            unknown = set(section_data) - known
            if unknown:
                raise ConfigError(
                    f"Unknown keys in section '{section.name}': "
                    f"{', '.join(sorted(unknown))}"
                )

            values = asdict(current)
            values.update(section_data)
            setattr(config, section.name, type(current)(**values))

        self._validate(config)
        return config

    @staticmethod
    def _validate(config: Config) -> None:
        if config.jobs.capacity < 0:
            raise ConfigError("jobs.capacity must not be negative")
        if config.server.max_clients < 1:
            raise ConfigError("server.max_clients must be at least 1")
        if config.server.read_size < 1 or config.client.read_size < 1:
            raise ConfigError("read_size must be at least 1")
        if config.server.outbox_size < 1:
            raise ConfigError("server.outbox_size must be at least 1")

    @property
    def config(self) -> Config:
        """Get the current configuration."""
        return self._config

    @property
    def loaded(self) -> bool:
        return self._loaded

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'server.max_clients')
            default: Default value if key not found
        """
        obj: Any = self._config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Changes are not persisted to disk.
        """
        parts = key.split('.')
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigError(f"Invalid configuration key: {key}")

        final_key = parts[-1]
        if hasattr(obj, final_key):
            setattr(obj, final_key, value)
        else:
            raise ConfigError(f"Invalid configuration key: {key}")

    def reset(self) -> None:
        """Return to the built-in defaults."""
        self._config = Config()
        self._loaded = False


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    return ConfigLoader().config
