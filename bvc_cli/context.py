"""
Per-invocation application context.

One AppContext is built by the root callback and passed to every command
through typer's ctx.obj. Tests pass their own via CliRunner.invoke(obj=...)
to pin the clock and replace the remote clients.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from bvc.config import UserConfig, load_user_config, require_remote
from bvc.core.clock import SystemClock
from bvc.core.errors import NotARepositoryError
from bvc.remote import ContentStoreClient, LedgerClient, connect_ledger
from bvc.store import IgnoreRules, RepositoryStore, find_repository


def default_content_factory(config: UserConfig) -> ContentStoreClient:
    return ContentStoreClient(
        endpoint=config.ipfs_endpoint,
        timeout=config.request_timeout,
        allow_simulated=config.development,
    )


@dataclass
class AppContext:
    """
    Explicit configuration of one bvc invocation.

    Fields:
        cwd: Working directory the command runs in
        debug: Print tracebacks for errors
        clock: Time source (SystemClock in production)
        home: Home directory for ~/.bvc (default: Path.home())
        env: Environment used for configuration overrides
        content_factory: Builds the content store client from a UserConfig
        ledger_factory: Builds the ledger client from a UserConfig
    """
    cwd: Path = field(default_factory=Path.cwd)
    debug: bool = False
    clock: Any = field(default_factory=SystemClock)
    home: Optional[Path] = None
    env: Mapping[str, str] = field(default_factory=lambda: os.environ)
    content_factory: Callable[[UserConfig], ContentStoreClient] = default_content_factory
    ledger_factory: Callable[[UserConfig], LedgerClient] = connect_ledger

    _user_config: Optional[UserConfig] = field(default=None, init=False, repr=False)

    def repo_root(self) -> Path:
        """
        Root of the repository containing cwd.

        Raises:
            NotARepositoryError: Outside a repository
        """
        return find_repository(self.cwd)

    def optional_repo_root(self) -> Optional[Path]:
        try:
            return self.repo_root()
        except NotARepositoryError:
            return None

    def store(self) -> RepositoryStore:
        store = RepositoryStore(self.repo_root())
        store.load_config()
        return store

    def ignore_rules(self, force: bool = False) -> IgnoreRules:
        return IgnoreRules.load(self.repo_root(), force=force)

    def home_dir(self) -> Path:
        return self.home if self.home is not None else Path.home()

    def user_config(self, reload: bool = False) -> UserConfig:
        if self._user_config is None or reload:
            base = self.optional_repo_root() or self.cwd
            self._user_config = load_user_config(base, home=self.home_dir(), env=self.env)
        return self._user_config

    def content(self) -> ContentStoreClient:
        return self.content_factory(self.user_config())

    def ledger(self) -> LedgerClient:
        """
        Ledger client for the configured network.

        Raises:
            ConfigurationMissingError: If credentials or endpoints are missing
        """
        config = self.user_config()
        require_remote(config)
        return self.ledger_factory(config)
