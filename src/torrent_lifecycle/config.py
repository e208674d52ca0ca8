"""
Configuration loader with environment variable expansion and universal _FILE support

Resolution order (highest to lowest priority):
1. Environment variable _FILE variant (reads from file)
2. Environment variable (direct value; CLI flags are exported here)
3. Config file
4. Default value
"""

import os
import re
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

from torrent_lifecycle.errors import ConfigurationError
from torrent_lifecycle.rules import RuleSet, compile_rule_set


# Maps config keys to environment variable names
ENV_VAR_MAP = {
    'config.dir': 'TORRENT_LIFECYCLE_CONFIG_DIR',
    'logging.level': 'TORRENT_LIFECYCLE_LOG_LEVEL',
    'logging.file': 'TORRENT_LIFECYCLE_LOG_FILE',
    'logging.trace_mode': 'TORRENT_LIFECYCLE_TRACE_MODE',
    'engine.dry_run': 'TORRENT_LIFECYCLE_DRY_RUN',
}

TRUE_VALUES = ('true', '1', 'yes', 'on')
FALSE_VALUES = ('false', '0', 'no', 'off')


def get_nested_config(config: Dict[str, Any], key: str) -> Optional[Any]:
    """
    Get nested configuration value using dot notation

    Args:
        config: Configuration dictionary
        key: Dot-notation key (e.g., 'logging.level')

    Returns:
        Configuration value or None if not found

    Examples:
        >>> config = {'logging': {'level': 'DEBUG'}}
        >>> get_nested_config(config, 'logging.level')
        'DEBUG'
        >>> get_nested_config(config, 'logging.missing') is None
        True
    """
    keys = key.split('.')
    value = config

    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return None

    return value


def parse_bool(value: Any) -> bool:
    """
    Parse boolean from various formats

    Examples:
        >>> parse_bool('true')
        True
        >>> parse_bool('1')
        True
        >>> parse_bool(0)
        False
        >>> parse_bool(None)
        False
    """
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        return value != 0

    if isinstance(value, str):
        return value.lower() in TRUE_VALUES

    return bool(value)


def parse_int(value: Any, default: int = 0) -> int:
    """
    Parse integer from various formats

    Args:
        value: Value to parse
        default: Default value if parsing fails

    Returns:
        Integer value
    """
    if value is None:
        return default

    if isinstance(value, int):
        return value

    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def resolve_config(
    env_var: str,
    config: Dict[str, Any],
    config_key: str,
    default: Optional[Any] = None
) -> Any:
    """
    Universal configuration resolver with _FILE support

    Resolution order:
    1. Environment variable _FILE variant (reads file content)
    2. Environment variable (direct value)
    3. Config file value
    4. Default value

    Args:
        env_var: Environment variable name (without _FILE suffix)
        config: Loaded configuration dictionary
        config_key: Dot-notation key for config file (e.g., 'logging.level')
        default: Default value if no source provides a value

    Returns:
        Resolved configuration value
    """

    # 1. Check _FILE variant (universal support)
    file_var = f"{env_var}_FILE"
    if file_var in os.environ:
        file_path = os.environ[file_var]
        try:
            with open(file_path, 'r') as f:
                content = f.read().strip()
            logging.debug(f"Loaded config from file: {file_var}={file_path}")
            return content
        except FileNotFoundError:
            logging.warning(f"File not found for {file_var}: {file_path}")
        except PermissionError:
            logging.warning(f"Permission denied reading {file_var}: {file_path}")
        except OSError as e:
            logging.warning(f"Error reading {file_var} from {file_path}: {e}")

    # 2. Direct environment variable
    if env_var in os.environ:
        logging.debug(f"Loaded config from env: {env_var}")
        return os.environ[env_var]

    # 3. Config file value
    if config:
        value = get_nested_config(config, config_key)
        if value is not None:
            logging.debug(f"Loaded config from file: {config_key}")
            return value

    # 4. Default value
    logging.debug(f"Using default config: {config_key}={default}")
    return default


def expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values

    Supports format: ${VAR_NAME:-default_value}

    Examples:
        >>> os.environ['TEST_VAR'] = 'hello'
        >>> expand_env_vars('${TEST_VAR:-default}')
        'hello'
        >>> expand_env_vars('${MISSING_VAR:-default}')
        'default'
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ''
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replacer, value)

    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]

    else:
        return value


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """
    Load YAML file with error handling

    Raises:
        ConfigurationError: If file cannot be loaded
    """
    if not file_path.exists():
        raise ConfigurationError(str(file_path), "File does not exist")

    try:
        with open(file_path, 'r') as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(str(file_path), f"Invalid YAML syntax: {str(e)}")
    except PermissionError:
        raise ConfigurationError(str(file_path), "Permission denied - cannot read file")
    except OSError as e:
        raise ConfigurationError(str(file_path), f"Cannot read file: {str(e)}")

    if content is None:
        raise ConfigurationError(str(file_path), "File is empty")

    if not isinstance(content, dict):
        raise ConfigurationError(str(file_path), "Top level must be a mapping")

    return content


def env_name(*parts: str) -> str:
    """Build an environment variable name, e.g. ('home', 'password') -> TORRENT_LIFECYCLE_HOME_PASSWORD"""
    cleaned = [re.sub(r'[^A-Za-z0-9]+', '_', p).strip('_').upper() for p in parts]
    return '_'.join(['TORRENT_LIFECYCLE'] + cleaned)


class Config:
    """Configuration manager"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration

        Args:
            config_dir: Directory containing config.yml
                       Defaults to TORRENT_LIFECYCLE_CONFIG_DIR or /config
        """
        if config_dir is None:
            config_dir = Path(os.environ.get(ENV_VAR_MAP['config.dir'], '/config'))

        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / 'config.yml'

        self._load_config()

    def _load_config(self):
        """Load config.yml with environment variable expansion"""
        logging.debug(f"Loading config from {self.config_file}")

        raw_config = load_yaml_file(self.config_file)
        self.config = expand_env_vars(raw_config)

        clients = self.config.get('clients') or {}
        if not isinstance(clients, dict):
            raise ConfigurationError(str(self.config_file), "'clients' must be a mapping of name to settings")

        filters = self.config.get('filters') or {}
        if not isinstance(filters, dict):
            raise ConfigurationError(str(self.config_file), "'filters' must be a mapping of name to rules")

        for name, settings in clients.items():
            if not isinstance(settings, dict):
                raise ConfigurationError(str(self.config_file), f"Client '{name}' must be a mapping")
            if 'type' not in settings:
                raise ConfigurationError(str(self.config_file), f"Client '{name}' missing required field: 'type'")

        logging.debug(f"Configuration loaded: {len(clients)} client(s), {len(filters)} filter(s)")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key

        Args:
            key: Configuration key (e.g., 'logging.level')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = get_nested_config(self.config, key)
        return default if value is None else value

    def get_client_names(self) -> List[str]:
        """Names of configured clients"""
        return list((self.config.get('clients') or {}).keys())

    def get_client_config(self, name: str) -> Dict[str, Any]:
        """
        Get one client's settings, with credentials resolved from env/_FILE

        Raises:
            ConfigurationError: If the client is not configured, has no host,
                or has malformed settle_intervals
        """
        names = self.get_client_names()
        if name not in names:
            available = ', '.join(names) or '(none defined)'
            raise ConfigurationError(str(self.config_file), f"Unknown client '{name}' (available: {available})")

        settings = dict(self.config['clients'][name])
        for key in ('host', 'username', 'password'):
            value = resolve_config(
                env_name(name, key),
                {key: settings.get(key)},
                key,
                default=settings.get(key)
            )
            if value is not None:
                settings[key] = value
            else:
                settings.pop(key, None)

        if not settings.get('host'):
            raise ConfigurationError(
                str(self.config_file),
                f"Client '{name}' missing required field: 'host' (or {env_name(name, 'host')})"
            )

        settings['verify_ssl'] = parse_bool(settings.get('verify_ssl', True))
        if 'timeout' in settings:
            settings['timeout'] = parse_int(settings['timeout'], default=30)
        if 'settle_intervals' in settings:
            settings['settle_intervals'] = self._parse_settle_intervals(name, settings['settle_intervals'])
        return settings

    def _parse_settle_intervals(self, name: str, value: Any) -> tuple:
        """Coerce settle_intervals to three non-negative floats (stop, start, reannounce)"""
        if not isinstance(value, (list, tuple)) or len(value) != 3:
            raise ConfigurationError(
                str(self.config_file),
                f"Client '{name}' settle_intervals must be a list of 3 numbers, got: {value!r}"
            )

        try:
            intervals = tuple(float(v) for v in value)
        except (ValueError, TypeError):
            raise ConfigurationError(
                str(self.config_file),
                f"Client '{name}' settle_intervals must be numeric, got: {value!r}"
            )

        if any(v < 0 for v in intervals):
            raise ConfigurationError(
                str(self.config_file),
                f"Client '{name}' settle_intervals must not be negative, got: {value!r}"
            )
        return intervals

    def get_rule_set(self, client_name: str) -> RuleSet:
        """
        Compile the filter referenced by a client

        Raises:
            ConfigurationError: If the referenced filter does not exist
            FieldError, OperatorError: If a condition is invalid
        """
        settings = self.get_client_config(client_name)
        filter_name = settings.get('filter', client_name)
        filters = self.config.get('filters') or {}

        if filter_name not in filters:
            available = ', '.join(filters) or '(none defined)'
            raise ConfigurationError(
                str(self.config_file),
                f"Client '{client_name}' references unknown filter '{filter_name}' (available: {available})"
            )

        return compile_rule_set(filters[filter_name], source=f"filters.{filter_name}")

    def is_dry_run(self) -> bool:
        """Check if dry-run mode is enabled"""
        return self._get_flag('engine.dry_run')

    def get_log_level(self) -> str:
        """Get logging level"""
        return str(resolve_config(ENV_VAR_MAP['logging.level'], self.config, 'logging.level', 'INFO')).upper()

    def get_log_file(self) -> Path:
        """
        Get log file path

        Relative paths are resolved against the config directory.
        """
        log_file_str = resolve_config(
            ENV_VAR_MAP['logging.file'], self.config, 'logging.file', 'logs/torrent-lifecycle.log'
        )
        log_path = Path(log_file_str)

        if not log_path.is_absolute():
            log_path = self.config_dir / log_path

        return log_path

    def get_trace_mode(self) -> bool:
        """Check if trace mode is enabled (detailed logging with module/function/line)"""
        return self._get_flag('logging.trace_mode')

    def _get_flag(self, key: str) -> bool:
        # ENV var takes precedence
        env_value = os.environ.get(ENV_VAR_MAP[key], '').lower()
        if env_value in TRUE_VALUES:
            return True
        elif env_value in FALSE_VALUES:
            return False

        return parse_bool(self.get(key, False))


def load_config(config_dir: Optional[Path] = None) -> Config:
    """
    Load configuration from directory

    Args:
        config_dir: Directory containing config.yml

    Returns:
        Config object
    """
    return Config(config_dir)
