"""Configuration loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigError

DEFAULT_STORAGE_FOLDER = ".flashcards"
PROVIDERS = ("openai", "claude")


@dataclass
class Config:
    """Application configuration."""

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    vault_path: Path = field(default_factory=Path.cwd)
    storage_folder: str = DEFAULT_STORAGE_FOLDER
    llm_provider: str = "openai"
    model: str = ""
    verbose: bool = False

    @property
    def default_model(self) -> str:
        if self.model:
            return self.model
        if self.llm_provider == "claude":
            return "claude-sonnet-4-20250514"
        return "gpt-5.1"

    @property
    def storage_root(self) -> Path:
        """Directory holding highlights, flashcards and progress."""
        return self.vault_path / (self.storage_folder or DEFAULT_STORAGE_FOLDER)

    @property
    def api_key(self) -> str:
        if self.llm_provider == "claude":
            return self.anthropic_api_key
        return self.openai_api_key

    def validate(self) -> None:
        """Validate configuration needed by every command."""
        if self.llm_provider not in PROVIDERS:
            raise ConfigError(
                f"Unknown LLM provider: {self.llm_provider}. Use 'openai' or 'claude'."
            )
        if not str(self.storage_folder).strip():
            raise ConfigError("Storage folder cannot be empty.")

    def require_llm(self) -> None:
        """Validate configuration needed for flashcard generation."""
        if self.api_key:
            return
        if self.llm_provider == "claude":
            raise ConfigError(
                "ANTHROPIC_API_KEY is required when using the Claude provider."
            )
        raise ConfigError(
            "OPENAI_API_KEY is required when using the OpenAI provider."
        )


def load_config(
    vault_path: Optional[str] = None,
    storage_folder: Optional[str] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    verbose: bool = False,
) -> Config:
    """Load config from .env and apply CLI overrides."""
    load_dotenv()

    config = Config(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        vault_path=Path(vault_path) if vault_path else Path(
            os.getenv("PDFCARDS_VAULT_PATH", str(Path.cwd()))
        ),
        storage_folder=storage_folder or os.getenv(
            "PDFCARDS_STORAGE_FOLDER", DEFAULT_STORAGE_FOLDER
        ),
        llm_provider=provider or os.getenv("PDFCARDS_PROVIDER", "openai"),
        model=model or os.getenv("PDFCARDS_MODEL", ""),
        verbose=verbose,
    )

    config.validate()
    return config
