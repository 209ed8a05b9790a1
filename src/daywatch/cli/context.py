"""Shared state of one CLI invocation."""

from datetime import timedelta
from pathlib import Path
from typing import Optional

import click  # type: ignore[import-not-found]

from daywatch.core.auth import AuthManager
from daywatch.core.config import ConfigManager
from daywatch.core.identity import IdentityResolver
from daywatch.core.kvstore import FileKeyValueStore, KeyValueStore
from daywatch.core.session import RecordSession
from daywatch.core.storage import create_store
from daywatch.core.tracker import TimeTracker


class AppContext:
    """Configuration, local state and identity for CLI commands.

    Everything is built lazily so that commands which only touch the
    configuration never open the record store.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        data_dir: Optional[str] = None,
        user: Optional[str] = None,
    ):
        self.config_path = Path(config_path) if config_path else None
        self.data_dir = data_dir
        self.user = user
        self._config: Optional[ConfigManager] = None
        self._kv: Optional[KeyValueStore] = None
        self._session: Optional[RecordSession] = None

    @property
    def config(self) -> ConfigManager:
        if self._config is None:
            self._config = ConfigManager(self.config_path)
            if self.data_dir:
                self._config.override("general.data_dir", self.data_dir)
        return self._config

    def stored_config(self) -> ConfigManager:
        """Configuration as saved on disk, without command-line overrides."""
        return ConfigManager(self.config_path)

    @property
    def kv(self) -> KeyValueStore:
        if self._kv is None:
            self._kv = FileKeyValueStore(self.config.state_file)
        return self._kv

    @property
    def authenticated(self) -> bool:
        return self.config.get("identity.mode", "anonymous") == "authenticated"

    def auth(self) -> AuthManager:
        """Auth manager over the local key-value store."""
        secret_key = self.config.get("auth.secret_key")
        if not secret_key:
            secret_key = self.stored_config().ensure_secret_key()
            self.config.override("auth.secret_key", secret_key)
        hours = self.config.get("auth.token_expiry_hours", 24)
        return AuthManager(self.kv, secret_key, token_expiry=timedelta(hours=hours))

    def identity(self) -> Optional[str]:
        """Current identity, None when signed out in authenticated mode."""
        if self.authenticated:
            return self.auth().subject
        params = {"user": self.user} if self.user else None
        return IdentityResolver(self.kv).resolve(params)

    def session(self) -> RecordSession:
        """Loaded record session of the current identity."""
        if self._session is None:
            access_token = None
            if self.authenticated:
                auth_session = self.auth().get_session()
                access_token = auth_session.access_token if auth_session else None
            store = create_store(self.config, self.kv, access_token)
            self._session = RecordSession(store, self.identity(), self.config.get_timezone())
            self._session.load()
        return self._session

    def tracker(self) -> TimeTracker:
        return TimeTracker(self.session(), state=self.kv)


pass_app = click.make_pass_decorator(AppContext)
