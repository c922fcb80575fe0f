"""
Application settings.

Loaded from a YAML file (config/cardflow.yaml, CARDFLOW_CONFIG, or --config):

    trello:
      key_env: TRELLO_KEY
      token_env: TRELLO_TOKEN
      credentials: ~/.trello/cred.yml   # optional {key, token} file
    tasks:
      path: tasks.yaml
      filter_case_sensitive: false
      max_depth: 32
    bot:
      token_env: CARDFLOW_BOT_TOKEN
      allowed_users: [12345]
      default_task: find_word
    logging:
      level: INFO

Secrets are never stored in the settings file itself, only the names of the
environment variables (or a credentials file) holding them. They are
resolved when the component needing them is built.
"""
import logging
import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .compiler import DEFAULT_CASE_SENSITIVE
from .engine import DEFAULT_MAX_DEPTH
from .errors import ConfigError
from .trello import DEFAULT_BASE_URL, DEFAULT_TIMEOUT

CONFIG_ENV = "CARDFLOW_CONFIG"
DEFAULT_CONFIG_PATH = Path("config") / "cardflow.yaml"

LOG_FORMAT = "%(asctime)s [cardflow] %(levelname)s: %(message)s"


@dataclass
class TrelloSettings:
    key_env: str = "TRELLO_KEY"
    token_env: str = "TRELLO_TOKEN"
    credentials: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class TaskSettings:
    path: str = "tasks.yaml"
    filter_case_sensitive: bool = DEFAULT_CASE_SENSITIVE
    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass
class BotSettings:
    token_env: str = "CARDFLOW_BOT_TOKEN"
    allowed_users: List[str] = field(default_factory=list)
    default_task: Optional[str] = None


@dataclass
class LoggingSettings:
    level: str = "INFO"


def _section(cls, data: Any, name: str):
    """Build a settings dataclass from a mapping, ignoring unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"section '{name}' should be a mapping, got: {data!r}")
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Settings:
    """Runtime configuration for the console and the bot."""

    trello: TrelloSettings = field(default_factory=TrelloSettings)
    tasks: TaskSettings = field(default_factory=TaskSettings)
    bot: BotSettings = field(default_factory=BotSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    base_dir: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "Settings":
        settings = cls(
            trello=_section(TrelloSettings, data.get("trello"), "trello"),
            tasks=_section(TaskSettings, data.get("tasks"), "tasks"),
            bot=_section(BotSettings, data.get("bot"), "bot"),
            logging=_section(LoggingSettings, data.get("logging"), "logging"),
            base_dir=base_dir or Path.cwd(),
        )
        # Telegram user ids arrive as ints from YAML; compare as strings.
        settings.bot.allowed_users = [str(uid) for uid in settings.bot.allowed_users or []]
        return settings

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """Load settings from YAML. A missing default file means all defaults."""
        explicit = path or os.environ.get(CONFIG_ENV)
        cfg_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH
        if not cfg_path.exists():
            if explicit:
                raise ConfigError(f"settings file not found: {cfg_path}")
            return cls()

        try:
            with open(cfg_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"settings file {cfg_path} is not valid yaml: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"settings file {cfg_path} should contain a mapping")
        return cls.from_dict(data, base_dir=cfg_path.resolve().parent)

    # ── Derived values ──

    def resolve_path(self, value: str) -> Path:
        """Expand ~ and anchor relative paths at the settings file directory."""
        p = Path(value).expanduser()
        return p if p.is_absolute() else self.base_dir / p

    @property
    def tasks_path(self) -> Path:
        return self.resolve_path(self.tasks.path)

    def trello_credentials(self) -> Tuple[str, str]:
        """Return (key, token) from the environment, else from the credentials file."""
        key = os.environ.get(self.trello.key_env)
        token = os.environ.get(self.trello.token_env)
        if (not key or not token) and self.trello.credentials:
            cred_path = self.resolve_path(self.trello.credentials)
            try:
                with open(cred_path, encoding="utf-8") as f:
                    cred = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"cannot read trello credentials {cred_path}: {e}") from e
            if not isinstance(cred, dict):
                raise ConfigError(f"trello credentials {cred_path} should have key and token")
            key = key or cred.get("key")
            token = token or cred.get("token")

        if not key or not token:
            raise ConfigError(
                "Trello credentials are not set.\n"
                f"Set them:  export {self.trello.key_env}=... {self.trello.token_env}=...\n"
                "or point trello.credentials at a file with `key` and `token`."
            )
        return str(key), str(token)

    def bot_token(self) -> str:
        token = os.environ.get(self.bot.token_env)
        if not token:
            raise ConfigError(
                f"Environment variable {self.bot.token_env} is not set.\n"
                f"Set it:  export {self.bot.token_env}=your_bot_token\n"
                f"Get a token from @BotFather on Telegram."
            )
        return token

    def is_authorized(self, user_id) -> bool:
        return str(user_id) in self.bot.allowed_users


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
