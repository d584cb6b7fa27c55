"""Configuration management for ToolDeck."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .providers.base import ProviderConfig
from .tools.calls import ExecutionStrategy

_log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/tooldeck/config.yaml"

DEFAULT_SYSTEM_MESSAGE = (
    "You are a function-calling assistant for multi-step requests. Break the "
    "user's request into the steps it needs. When a later step depends on the "
    "result of an earlier one, call CallMultiStep with one prompt per step, in "
    "order. Tasks that do not depend on each other belong in the same step so "
    "they can run in parallel. For example, to add 8 and 2 and then multiply "
    "the result by 7 and by 5, use two prompts: the addition, then both "
    "multiplications together. Do not leave out any step of the request."
)

# Environment variables that override the limits and relevance sections.
ENV_OVERRIDES = {
    "TOOLDECK_EMBED_PATH": ("relevance", "embed_path", str),
    "TOOLDECK_EMBED_MODEL": ("relevance", "embed_model", str),
    "TOOLDECK_MAX_RESPONSE_TOKENS": ("limits", "max_response_tokens", int),
    "TOOLDECK_MAX_REQUEST_TOKENS": ("limits", "max_request_tokens", int),
    "TOOLDECK_MAX_FUNC_TOKENS": ("limits", "max_function_tokens", int),
}


@dataclass(frozen=True)
class EngineSettings:
    """Limits and relevance options for one orchestrator."""

    model: str = "gpt-4-1106-preview"
    max_response_tokens: int = 1000
    max_request_tokens: int = 4191
    max_function_tokens: int = 500
    max_depth: int = 3
    relevance_enabled: bool = False
    embed_path: Optional[str] = None
    embed_model: Optional[str] = None
    strategy: ExecutionStrategy = ExecutionStrategy.ASYNC
    system_message: str = DEFAULT_SYSTEM_MESSAGE

    def validate(self) -> "EngineSettings":
        if self.relevance_enabled and not (self.embed_path and self.embed_model):
            raise ConfigError(
                "Relevance filtering needs both an embedding archive path "
                "and an embedding model"
            )
        for field_name in (
            "max_response_tokens", "max_request_tokens", "max_function_tokens",
        ):
            if getattr(self, field_name) <= 0:
                raise ConfigError(f"{field_name} must be positive")
        if self.max_depth < 1:
            raise ConfigError("max_depth must be at least 1")
        return self


class ConfigManager:
    """Manage ToolDeck configuration from YAML."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH).expanduser()
        self.data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            self._create_default_config()
        return self._read_yaml()

    def _read_yaml(self) -> Dict[str, Any]:
        """Read and parse YAML file."""
        try:
            with open(self.config_path, "r") as f:
                content = yaml.safe_load(f)
                return content or {}
        except (OSError, yaml.YAMLError) as e:
            _log.warning("Error reading config %s: %s", self.config_path, e)
            return {}

    def _create_default_config(self) -> None:
        """Create default configuration file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        default_config = {
            "provider": {
                "name": "openai",
                "api_key": "${OPENAI_API_KEY}",
                "model": "gpt-4-1106-preview",
                "temperature": 0.7,
            },
            "relevance": {
                "enabled": False,
                "embed_path": "~/.config/tooldeck/function_embeddings.npy",
                "embed_model": "text-embedding-3-small",
            },
            "limits": {
                "max_response_tokens": 1000,
                "max_request_tokens": 4191,
                "max_function_tokens": 500,
                "max_depth": 3,
            },
            "execution": {
                "strategy": "async",
            },
        }

        with open(self.config_path, "w") as f:
            yaml.dump(default_config, f, default_flow_style=False)

    def _resolve_env_var(self, value: Any) -> Any:
        """Resolve environment variable references like ${VAR_NAME}."""
        if not isinstance(value, str):
            return value
        if not value.startswith("${") or not value.endswith("}"):
            return value

        var_name = value[2:-1]
        return os.getenv(var_name, "")

    def _section(self, name: str) -> Dict[str, Any]:
        section = dict(self.data.get(name) or {})
        for env_name, (target, key, cast) in ENV_OVERRIDES.items():
            if target != name:
                continue
            raw = os.getenv(env_name)
            if not raw:
                continue
            try:
                section[key] = cast(raw)
            except ValueError as e:
                raise ConfigError(f"{env_name}={raw!r} is not valid: {e}") from e
        return section

    def get_provider_name(self) -> str:
        return self._section("provider").get("name", "openai")

    def get_provider_config(self) -> Optional[ProviderConfig]:
        """Provider settings, or None when no API key resolves."""
        provider = self._section("provider")
        relevance = self._section("relevance")

        api_key = self._resolve_env_var(provider.get("api_key", ""))
        if not api_key:
            return None

        return ProviderConfig(
            api_key=api_key,
            model=provider.get("model", EngineSettings.model),
            base_url=provider.get("base_url"),
            temperature=provider.get("temperature", 0.7),
            embedding_model=relevance.get("embed_model"),
            timeout=provider.get("timeout", 60.0),
        )

    def get_engine_settings(self) -> EngineSettings:
        """Build validated engine settings from the config file and environment."""
        provider = self._section("provider")
        relevance = self._section("relevance")
        limits = self._section("limits")
        execution = self._section("execution")

        # Setting the archive path in the environment turns filtering on.
        enabled = bool(relevance.get("enabled", False)) or bool(
            os.getenv("TOOLDECK_EMBED_PATH")
        )

        strategy_name = str(execution.get("strategy", "async")).lower()
        try:
            strategy = ExecutionStrategy(strategy_name)
        except ValueError:
            raise ConfigError(f"Unknown execution strategy: {strategy_name}") from None

        defaults = EngineSettings()
        try:
            settings = EngineSettings(
                model=provider.get("model", defaults.model),
                max_response_tokens=int(
                    limits.get("max_response_tokens", defaults.max_response_tokens)
                ),
                max_request_tokens=int(
                    limits.get("max_request_tokens", defaults.max_request_tokens)
                ),
                max_function_tokens=int(
                    limits.get("max_function_tokens", defaults.max_function_tokens)
                ),
                max_depth=int(limits.get("max_depth", defaults.max_depth)),
                relevance_enabled=enabled,
                embed_path=relevance.get("embed_path"),
                embed_model=relevance.get("embed_model"),
                strategy=strategy,
                system_message=self.data.get("system_message") or DEFAULT_SYSTEM_MESSAGE,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid limits in {self.config_path}: {e}") from e
        return settings.validate()

    def save(self) -> None:
        """Save configuration to file."""
        with open(self.config_path, "w") as f:
            yaml.dump(self.data, f, default_flow_style=False)
