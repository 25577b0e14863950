"""
Validator for config.yaml and the required environment variables.

Validates structure, required fields, and common misconfigurations.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping


logger = logging.getLogger(__name__)

SUMMARIZERS = ("ai", "plain")
PROVIDERS = ("openai", "ollama")
REQUIRED_ENV_KEYS = ("DISCORD_BOT_TOKEN", "GITHUB_TOKEN", "GITHUB_REPO", "OWNER_DISCORD_ID")
KNOWN_KEYS = {
    "summarizer",
    "model",
    "temperature",
    "providers",
    "notice_delay_seconds",
    "ack_emoji",
    "history_limit",
    "labels",
    "notify_owner_on_error",
    "status_message",
    "github_api_url",
}
REPO_RE = re.compile(r"^[\w.-]+/[\w.-]+$")


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _report(errors: list[str], warnings: list[str], source: str) -> None:
    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    if errors:
        logger.error("=" * 70)
        logger.error("CONFIG VALIDATION FAILED (%s)", source)
        logger.error("=" * 70)
        for i, error in enumerate(errors, 1):
            logger.error("[%d] %s", i, error)
        logger.error("=" * 70)
        logger.error("Please fix the errors above and restart the bot.")
        logger.error("=" * 70)
        raise ConfigValidationError(f"Config validation failed with {len(errors)} error(s)")


def validate_config(cfg: dict[str, Any], config_path: str = "config.yaml") -> None:
    """
    Validate the optional config.yaml mapping.

    Raises ConfigValidationError if validation fails.
    Logs detailed error messages before raising.

    Args:
        cfg: The loaded config dictionary (may be empty)
        config_path: Path to config file (for error messages)
    """
    errors: list[str] = []
    warnings: list[str] = []

    # ── Root structure ──────────────────────────────────────────────────────
    if not isinstance(cfg, dict):
        _report([f"Config root must be a mapping, got {type(cfg).__name__}"], [], config_path)
        return

    for key in cfg:
        if key not in KNOWN_KEYS:
            warnings.append(f"Unknown top-level key '{key}' is ignored")

    # ── Summarizer + model ──────────────────────────────────────────────────
    summarizer = cfg.get("summarizer", "ai")
    if summarizer not in SUMMARIZERS:
        errors.append(f"'summarizer' must be one of {', '.join(SUMMARIZERS)}, got {summarizer!r}")

    if "model" in cfg:
        model = cfg["model"]
        if not isinstance(model, str) or "/" not in model:
            errors.append(f"'model' must look like 'provider/model', got {model!r}")
        else:
            provider = model.split("/", 1)[0]
            if provider not in PROVIDERS:
                errors.append(
                    f"'model' provider '{provider}' is not supported "
                    f"(use one of: {', '.join(PROVIDERS)})"
                )
            elif provider == "ollama" and "ollama" not in (cfg.get("providers") or {}):
                errors.append("'model' uses ollama but 'providers.ollama.base_url' is not set")

    if "temperature" in cfg:
        temperature = cfg["temperature"]
        if not _is_number(temperature) or not 0 <= temperature <= 2:
            errors.append(f"'temperature' must be a number between 0 and 2, got {temperature!r}")

    # ── Providers ───────────────────────────────────────────────────────────
    if "providers" in cfg:
        providers = cfg["providers"]
        if not isinstance(providers, dict):
            errors.append(f"'providers' must be a mapping, got {type(providers).__name__}")
        else:
            for provider_name, provider_config in providers.items():
                if provider_name not in PROVIDERS:
                    warnings.append(f"Provider '{provider_name}' is not used by this bot")
                if not isinstance(provider_config, dict):
                    errors.append(
                        f"Provider '{provider_name}' config must be a mapping, "
                        f"got {type(provider_config).__name__}"
                    )
                elif provider_name == "ollama" and "base_url" not in provider_config:
                    errors.append("Provider 'ollama' missing required 'base_url'")

    # ── Discord behaviour ───────────────────────────────────────────────────
    if "notice_delay_seconds" in cfg:
        delay = cfg["notice_delay_seconds"]
        if not _is_number(delay) or delay < 0:
            errors.append(f"'notice_delay_seconds' must be a non-negative number, got {delay!r}")

    if "history_limit" in cfg:
        limit = cfg["history_limit"]
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            errors.append(f"'history_limit' must be a positive integer, got {limit!r}")
        elif limit > 100:
            warnings.append(f"'history_limit' of {limit} needs several history requests per command")

    for key in ("ack_emoji", "status_message", "github_api_url"):
        if key in cfg and not isinstance(cfg[key], str):
            errors.append(f"'{key}' must be a string, got {type(cfg[key]).__name__}")

    if "notify_owner_on_error" in cfg and not isinstance(cfg["notify_owner_on_error"], bool):
        errors.append(
            f"'notify_owner_on_error' must be boolean, "
            f"got {type(cfg['notify_owner_on_error']).__name__}"
        )

    # ── Labels ──────────────────────────────────────────────────────────────
    if "labels" in cfg:
        labels = cfg["labels"]
        if not isinstance(labels, dict):
            errors.append(f"'labels' must be a mapping, got {type(labels).__name__}")
        else:
            provenance = labels.get("provenance")
            if provenance is not None and (
                not isinstance(provenance, list) or not all(isinstance(x, str) for x in provenance)
            ):
                errors.append("'labels.provenance' must be a list of strings")
            for kind in ("feature", "bug"):
                if kind in labels and not isinstance(labels[kind], str):
                    errors.append(f"'labels.{kind}' must be a string, got {type(labels[kind]).__name__}")

    _report(errors, warnings, config_path)


def validate_environment(env: Mapping[str, str | None]) -> None:
    """
    Check the secrets and identities that only come from the environment.

    Raises ConfigValidationError if any required key is missing or malformed.
    """
    errors: list[str] = []

    for key in REQUIRED_ENV_KEYS:
        if not env.get(key):
            errors.append(f"Missing required environment variable: {key}")

    repo = env.get("GITHUB_REPO")
    if repo and not REPO_RE.match(repo):
        errors.append(f"GITHUB_REPO must look like 'owner/repo', got {repo!r}")

    owner_id = env.get("OWNER_DISCORD_ID")
    if owner_id and not owner_id.strip().isdigit():
        errors.append(f"OWNER_DISCORD_ID must be a numeric Discord user id, got {owner_id!r}")

    _report(errors, [], "environment")
