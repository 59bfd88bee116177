"""Configuration management for collectionkit."""

import os
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


DEFAULT_IGNORED_DIRS = [
    ".git",
    ".next",
    ".turbo",
    "build",
    "dist",
    "node_modules",
    "out",
    "__pycache__",
]


class Config(BaseModel):
    """Application configuration."""

    # Environment
    environment: str = Field(default="development")

    # Scanner Settings
    max_file_size: int = Field(default=1_000_000)  # 1MB
    ignored_dirs: list[str] = Field(default_factory=lambda: DEFAULT_IGNORED_DIRS.copy())
    cache_dir: str = Field(default=".collectionkit")

    # Collection declarations
    collection_module: str = Field(default="renoun/collections")
    collection_function: str = Field(default="createCollection")

    # RPC Settings
    host: str = Field(default="localhost")
    port: int = Field(default=5996)
    max_reconnect_attempts: int = Field(default=10)
    reconnect_interval: float = Field(default=1.0)

    # Editor
    editor_scheme: str = Field(default="vscode")

    # Watcher
    watch_debounce: float = Field(default=0.05)

    # Analysis
    max_snippets: int = Field(default=50)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        def _parse_int(value: Optional[str], fallback: int) -> int:
            try:
                return int(value) if value is not None else fallback
            except ValueError:
                return fallback

        ignored_dirs = DEFAULT_IGNORED_DIRS.copy()
        extra_ignored = os.getenv("IGNORED_DIRS")
        if extra_ignored:
            ignored_dirs.extend(
                [entry.strip() for entry in extra_ignored.split(",") if entry.strip()]
            )

        environment = os.getenv("COLLECTIONKIT_ENV") or os.getenv("NODE_ENV") or "development"

        return cls(
            environment=environment,
            max_file_size=_parse_int(os.getenv("MAX_FILE_SIZE"), 1_000_000),
            ignored_dirs=ignored_dirs,
            cache_dir=os.getenv("COLLECTIONKIT_CACHE_DIR", ".collectionkit"),
            collection_module=os.getenv("COLLECTIONKIT_MODULE", "renoun/collections"),
            collection_function=os.getenv("COLLECTIONKIT_FUNCTION", "createCollection"),
            host=os.getenv("COLLECTIONKIT_HOST", "localhost"),
            port=_parse_int(os.getenv("COLLECTIONKIT_PORT"), 5996),
            max_reconnect_attempts=_parse_int(os.getenv("COLLECTIONKIT_RECONNECT_ATTEMPTS"), 10),
            editor_scheme=os.getenv("COLLECTIONKIT_EDITOR_SCHEME", "vscode"),
            max_snippets=_parse_int(os.getenv("COLLECTIONKIT_MAX_SNIPPETS"), 50),
        )
