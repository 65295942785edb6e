"""
Configuration loader for the Hue Link server
Loads and validates configuration from YAML files
"""

import yaml
import logging
from typing import Dict, Any
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError("Configuration root must be a mapping")

        # Apply defaults first so validation sees complete sections
        config = _apply_defaults(config)

        _validate_config(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def _validate_config(config: Dict) -> None:
    """Validate configuration values"""
    # Pairing window: the bridge keeps the link button open for 30 seconds
    timeout = config['pairing']['timeout_seconds']
    if isinstance(timeout, bool) or not isinstance(timeout, int) or not 0 <= timeout <= 30:
        raise ValueError("pairing.timeout_seconds must be an integer between 0 and 30")

    if config['pairing']['poll_interval_seconds'] <= 0:
        raise ValueError("pairing.poll_interval_seconds must be positive")

    if config['dispatch']['local_timeout_seconds'] <= 0:
        raise ValueError("dispatch.local_timeout_seconds must be positive")

    endpoint_url = config['discovery']['endpoint_url']
    if not str(endpoint_url).startswith('https://'):
        logger.warning(f"discovery.endpoint_url is not HTTPS: {endpoint_url}")

    for bridge in config.get('known_bridges') or []:
        if not isinstance(bridge, dict) or 'ip_address' not in bridge:
            raise ValueError("known_bridges entries need an ip_address")

    remote = config['remote']
    if remote.get('client_id') and not remote.get('redirect_uri'):
        logger.warning("remote.client_id is set but remote.redirect_uri is missing - remote auth disabled")

    try:
        pytz.timezone(config['logging']['timezone'])
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown logging.timezone: {config['logging']['timezone']}")


def _apply_section_defaults(config: Dict, section: str, defaults: Dict) -> None:
    if not isinstance(config.get(section), dict):
        config[section] = {}
    for key, default_value in defaults.items():
        if key not in config[section]:
            config[section][key] = default_value


def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    _apply_section_defaults(config, 'discovery', {
        'endpoint_url': 'https://discovery.meethue.com',
        'mdns_enabled': True,
        'mdns_service_type': '_hue._tcp.local.',
        'mdns_timeout_seconds': 3,
        'request_timeout': 5
    })

    _apply_section_defaults(config, 'pairing', {
        'timeout_seconds': 10,
        'poll_interval_seconds': 1,
        'device_name': 'HueLink',
        'request_timeout': 5
    })

    _apply_section_defaults(config, 'dispatch', {
        'local_timeout_seconds': 1.0,       # Anything slower is treated as off-network
        'remote_timeout_seconds': 10
    })

    _apply_section_defaults(config, 'remote', {
        'client_id': None,
        'client_secret': None,
        'redirect_uri': None,
        'device_name': None,
        'ssl_verify': True
    })

    _apply_section_defaults(config, 'api', {
        'host': '0.0.0.0',
        'port': 8000,
        'cors_origins': ['*']
    })

    _apply_section_defaults(config, 'logging', {
        'level': 'INFO',
        'file': 'logs/hue_link.log',
        'console_output': True,
        'timezone': 'UTC'
    })

    if not config.get('known_bridges'):
        config['known_bridges'] = []

    return config


def remote_auth_enabled(config: Dict) -> bool:
    """Remote routes need at least a client id and redirect URI"""
    remote = config.get('remote', {})
    return bool(remote.get('client_id') and remote.get('redirect_uri'))


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime('%Y-%m-%d %H:%M:%S %Z')


def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, tz_name)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, timezone={tz_name}, "
                f"console={log_config.get('console_output', True)}, file={log_file}")


def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "discovery": {
            "endpoint_url": "https://discovery.meethue.com",
            "mdns_enabled": True,
            "mdns_service_type": "_hue._tcp.local.",
            "mdns_timeout_seconds": 3,
            "request_timeout": 5
        },
        "pairing": {
            "timeout_seconds": 10,
            "poll_interval_seconds": 1,
            "device_name": "HueLink",
            "request_timeout": 5
        },
        "dispatch": {
            "local_timeout_seconds": 1.0,
            "remote_timeout_seconds": 10
        },
        "remote": {
            "client_id": "your-client-id",
            "client_secret": "your-client-secret",
            "redirect_uri": "https://example.com/hue/callback",
            "device_name": "hue-link",
            "ssl_verify": True
        },
        "api": {
            "host": "0.0.0.0",
            "port": 8000,
            "cors_origins": ["*"]
        },
        "logging": {
            "level": "INFO",
            "file": "logs/hue_link.log",
            "console_output": True,
            "timezone": "UTC"
        },
        "known_bridges": [
            {"id": "f1c2d3e4-0000-4000-8000-000000000001", "ip_address": "192.168.1.20"}
        ]
    }
