# vibey/config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator
from pathlib import Path
import logging
from typing import Optional, Dict, Any

from vibey.exceptions.config import ConfigError

logger = logging.getLogger("Settings")

CONTEXT_STRATEGIES = {"inline", "sliding_window"}
PROVIDERS = {"ollama", "openai"}


class Settings(BaseSettings):
    # === Environment Variables (CLEAN NAMES) ===
    workspace: Path = Field(default_factory=Path.cwd)
    log_level: str = "INFO"
    llm_provider: str = "ollama"
    model_name: str = "qwen2.5-coder:7b"
    ollama_host: str = "http://localhost:11434"
    ollama_api_key: Optional[str] = None
    openai_base_url: str = "http://localhost:1234/v1"
    openai_api_key: Optional[str] = None
    system_prompt_path: Optional[Path] = None
    model_options: Dict[str, Any] = Field(default_factory=dict)

    # === Token Budget ===
    max_context_tokens: int = 32768
    warning_threshold_ratio: float = 0.8
    condensation_threshold: float = 0.9
    response_token_reserve: int = 2000
    request_timeout: float = 300.0

    # === Context Assembly ===
    context_strategy: str = "inline"
    context_window_tokens: int = 256 * 1024
    max_file_lines: int = 256

    # === Agent Loop ===
    max_turns: int = 256
    empty_response_retries: int = 1
    tool_timeout: int = 60
    allow_shell: bool = True

    # === Computed Fields ===
    system_prompt: Optional[str] = None

    # === Pydantic V2 Configuration ===
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # NO prefix - clean names match exactly
        extra="ignore",
        case_sensitive=False,
    )

    # === Model Validator ===

    @model_validator(mode="after")
    def validate_and_compute(self) -> "Settings":
        """Validate and compute derived fields."""

        # 1. Validate workspace exists
        self.workspace = Path(self.workspace).expanduser().resolve()
        if not self.workspace.is_dir():
            raise ConfigError(
                f"Workspace directory does not exist: {self.workspace}",
                field_name="workspace",
                invalid_value=str(self.workspace),
            )

        # 2. Optional custom system prompt
        if self.system_prompt_path is not None:
            prompt_path = Path(self.system_prompt_path).expanduser()
            if not prompt_path.is_absolute():
                prompt_path = self.workspace / prompt_path
            if not prompt_path.exists():
                raise ConfigError(
                    f"System prompt file not found: {prompt_path}",
                    field_name="system_prompt_path",
                )
            self.system_prompt = prompt_path.read_text(encoding="utf-8").strip()
            if not self.system_prompt:
                raise ConfigError(
                    f"System prompt file is empty: {prompt_path}",
                    field_name="system_prompt_path",
                )

        # 3. Validate log level
        if self.log_level.upper() not in logging._nameToLevel:
            raise ConfigError(
                f"Invalid log level: {self.log_level}",
                field_name="log_level",
                invalid_value=self.log_level,
            )
        self.log_level = self.log_level.upper()

        # 4. Validate provider selection
        normalized_provider = (self.llm_provider or "ollama").strip().lower()
        if normalized_provider not in PROVIDERS:
            raise ConfigError(
                "Invalid llm_provider value. Expected 'ollama' or 'openai'. "
                f"Got: {self.llm_provider}",
                field_name="llm_provider",
                invalid_value=self.llm_provider,
            )
        self.llm_provider = normalized_provider

        # 5. Context strategy
        strategy = self.context_strategy.strip().lower()
        if strategy not in CONTEXT_STRATEGIES:
            raise ConfigError(
                f"Invalid context_strategy: {self.context_strategy}. "
                f"Expected one of {sorted(CONTEXT_STRATEGIES)}",
                field_name="context_strategy",
                invalid_value=self.context_strategy,
            )
        self.context_strategy = strategy

        # 6. Budgets must be positive
        for name in (
            "max_context_tokens",
            "context_window_tokens",
            "max_file_lines",
            "max_turns",
            "tool_timeout",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(
                    f"{name} must be positive, got {value}",
                    field_name=name,
                    invalid_value=value,
                )

        if self.empty_response_retries < 0:
            raise ConfigError(
                "empty_response_retries cannot be negative",
                field_name="empty_response_retries",
                invalid_value=self.empty_response_retries,
            )

        if self.request_timeout <= 0:
            raise ConfigError(
                f"request_timeout must be positive, got {self.request_timeout}",
                field_name="request_timeout",
                invalid_value=self.request_timeout,
            )

        # 7. Ratios
        if not 0 < self.warning_threshold_ratio <= 1:
            raise ConfigError(
                "warning_threshold_ratio must be in (0, 1]",
                field_name="warning_threshold_ratio",
                invalid_value=self.warning_threshold_ratio,
            )
        if not self.warning_threshold_ratio <= self.condensation_threshold <= 1:
            raise ConfigError(
                "condensation_threshold must lie between warning_threshold_ratio and 1",
                field_name="condensation_threshold",
                invalid_value=self.condensation_threshold,
            )

        return self

    # === Convenience Properties ===

    @property
    def workspace_root(self) -> Path:
        """Alias for workspace."""
        return self.workspace

    @property
    def condensation_trigger_tokens(self) -> int:
        """Token total at which a context block is condensed."""
        return int(self.max_context_tokens * self.condensation_threshold)


def load_settings(env_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """
    Build a Settings instance.

    Values come from the environment and the ``.env`` file; keyword
    overrides win over both.
    """
    if env_file is not None:
        settings = Settings(_env_file=env_file, **overrides)
    else:
        settings = Settings(**overrides)

    logger.debug(
        "Settings loaded: provider=%s model=%s workspace=%s",
        settings.llm_provider,
        settings.model_name,
        settings.workspace,
    )
    return settings
