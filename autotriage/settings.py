"""Settings resolution with named rule profiles."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "autotriage" / "config.toml"


class TriageSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRIAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_rule: str | None = None  # profile name

    # GitHub
    github_token: SecretStr | None = None
    github_auth: str = "token"  # "token" | "gh-cli"

    # Rule
    repo: str | None = None  # "owner/name"
    label: str | None = None
    minimum_age_days: int = 30 * 12 * 3
    exclude_label_containing: str | None = "triaged"

    # Query limits
    page_size: int = 100
    max_pages: int = 100
    min_rate_limit_remaining: int = 50

    log_level: str = "INFO"


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/autotriage/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(rule: str | None = None) -> TriageSettings:
    """Resolve the active rule profile and return a fully populated TriageSettings.

    Precedence (highest to lowest):
    1. rule argument (--rule CLI flag)
    2. TRIAGE_DEFAULT_RULE env var
    3. default_rule key in ~/.config/autotriage/config.toml
    4. First profile defined in ~/.config/autotriage/config.toml
    """
    toml_config = _load_toml()

    active = (
        rule
        or os.environ.get("TRIAGE_DEFAULT_RULE")
        or toml_config.get("default_rule")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Rule '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    # Init kwargs beat the environment in pydantic-settings, so re-apply TRIAGE_* vars over the profile
    env_overrides = {
        name: value for name in TriageSettings.model_fields if (value := os.environ.get(f"TRIAGE_{name.upper()}"))
    }
    settings = TriageSettings(**{**profile_defaults, **env_overrides})

    if settings.github_auth == "token" and not settings.github_token:
        typer.echo(
            "Missing GitHub credentials. Set TRIAGE_GITHUB_TOKEN or "
            f"github_token in the [{active or 'rule'}] section of {CONFIG_PATH}, "
            'or set github_auth = "gh-cli" to use the gh CLI.'
        )
        raise typer.Exit(1)

    return settings
