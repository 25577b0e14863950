from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .validator import ConfigValidationError, validate_config, validate_environment


DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "CONFIG_PATH"

# Per-summarizer defaults; anything in config.yaml overrides them.
SUMMARIZER_DEFAULTS: dict[str, dict[str, Any]] = {
    "ai": {
        "notice_delay_seconds": 60,
        "provenance": ("discord", "auto-generated"),
    },
    "plain": {
        "notice_delay_seconds": 10,
        "provenance": ("discord",),
    },
}


@dataclass(frozen=True)
class Settings:
    discord_token: str
    github_token: str
    github_repo: str
    owner_id: int
    summarizer: str = "ai"
    model: str = "openai/gpt-4.1-mini"
    temperature: float = 0.3
    providers: dict[str, dict[str, Any]] = field(default_factory=dict)
    notice_delay_seconds: float = 60
    ack_emoji: str = "🧠"
    history_limit: int = 100
    provenance_labels: tuple[str, ...] = ("discord", "auto-generated")
    feature_label: str = "enhancement"
    bug_label: str = "bug"
    notify_owner_on_error: bool = True
    status_message: str | None = None
    github_api_url: str = "https://api.github.com"

    @property
    def repo_owner(self) -> str:
        return self.github_repo.split("/", 1)[0]

    @property
    def repo_name(self) -> str:
        return self.github_repo.split("/", 1)[1]

    @property
    def provider(self) -> str:
        return self.model.split("/", 1)[0]

    @property
    def model_name(self) -> str:
        return self.model.split("/", 1)[1]


def get_config_path() -> str:
    """
    Resolve the config path, preferring an explicit environment override.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    return DEFAULT_CONFIG_FILE


def _load_raw_config(path: str | None = None) -> dict[str, Any]:
    explicit = path is not None or CONFIG_ENV_VAR in os.environ
    cfg_path = path or get_config_path()
    try:
        with open(cfg_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if explicit:
            logging.error("Config file not found: %s", cfg_path)
            sys.exit(1)
        logging.info("No %s found, using built-in defaults", cfg_path)
        return {}
    except yaml.YAMLError as e:
        logging.error("YAML parsing error in %s: %s", cfg_path, e)
        sys.exit(1)

    if not isinstance(data, dict):
        logging.error("Config root must be a mapping, got %s", type(data).__name__)
        sys.exit(1)

    return data


def get_config(path: str | None = None) -> dict[str, Any]:
    """
    Public helper for loading the optional YAML configuration.

    - Respects CONFIG_PATH if set.
    - A missing default config.yaml is fine; a missing explicit path is not.
    - Exits with error code 1 if validation fails.
    """
    cfg_path = path or get_config_path()
    cfg = _load_raw_config(path)

    try:
        validate_config(cfg, cfg_path)
    except ConfigValidationError:
        sys.exit(1)

    return cfg


def build_settings(cfg: dict[str, Any], env: Mapping[str, str | None]) -> Settings:
    """
    Merge validated config.yaml values and environment secrets into Settings.
    """
    summarizer = cfg.get("summarizer", "ai")
    defaults = SUMMARIZER_DEFAULTS[summarizer]
    labels = cfg.get("labels") or {}

    return Settings(
        discord_token=env["DISCORD_BOT_TOKEN"] or "",
        github_token=env["GITHUB_TOKEN"] or "",
        github_repo=(env["GITHUB_REPO"] or "").strip(),
        owner_id=int((env["OWNER_DISCORD_ID"] or "0").strip()),
        summarizer=summarizer,
        model=cfg.get("model", "openai/gpt-4.1-mini"),
        temperature=float(cfg.get("temperature", 0.3)),
        providers=dict(cfg.get("providers") or {}),
        notice_delay_seconds=float(cfg.get("notice_delay_seconds", defaults["notice_delay_seconds"])),
        ack_emoji=cfg.get("ack_emoji", "🧠"),
        history_limit=int(cfg.get("history_limit", 100)),
        provenance_labels=tuple(labels.get("provenance") or defaults["provenance"]),
        feature_label=labels.get("feature", "enhancement"),
        bug_label=labels.get("bug", "bug"),
        notify_owner_on_error=cfg.get("notify_owner_on_error", True),
        status_message=cfg.get("status_message"),
        github_api_url=cfg.get("github_api_url", "https://api.github.com").rstrip("/"),
    )


def load_settings(path: str | None = None) -> Settings:
    """
    Load .env, the optional config.yaml and the required environment keys.

    Exits with error code 1 on any validation failure.
    """
    load_dotenv()
    cfg = get_config(path)

    try:
        validate_environment(os.environ)
    except ConfigValidationError:
        sys.exit(1)

    return build_settings(cfg, os.environ)
