"""
User configuration.

- UserConfig / load_user_config / save_user_config: user-config.json handling
- encrypt_secret / decrypt_secret: private key at rest
- check_configuration / require_remote: readiness checks for remote commands
"""

from .user import (
    ENV_OVERRIDES,
    USER_CONFIG_FILE,
    UserConfig,
    load_user_config,
    parse_user_config,
    save_user_config,
    user_config_paths,
)
from .secrets import PASSPHRASE_ENV, decrypt_secret, encrypt_secret
from .checker import ConfigIssue, check_configuration, require_remote

__all__ = [
    "ENV_OVERRIDES",
    "USER_CONFIG_FILE",
    "UserConfig",
    "load_user_config",
    "parse_user_config",
    "save_user_config",
    "user_config_paths",
    "PASSPHRASE_ENV",
    "decrypt_secret",
    "encrypt_secret",
    "ConfigIssue",
    "check_configuration",
    "require_remote",
]
