"""Configuration management for mdtrello."""

import sys
from datetime import date
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdtrello.checklist.models import GroupBy, ScanOptions

DEFAULT_SOURCE_FILE = Path("docs") / "SYSTEM_ANALYSIS.md"


def _default_list_name() -> str:
    return f"Markdown Export {date.today().isoformat()}"


class ScanSettings(BaseSettings):
    """Settings needed to scan a document."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    source_file: Path = Field(
        default=DEFAULT_SOURCE_FILE,
        description="Markdown document, relative to the project root",
    )

    # Filters
    exclude_completed: bool = Field(
        default=False,
        description='Skip checked items ("1" = on)',
    )
    include_toplevel: bool = Field(
        default=False,
        description='Export unindented container items too ("1" = on)',
    )
    group_by: GroupBy = Field(
        default=GroupBy.H4,
        description="Deepest heading level used for list names: h4, h3 or h2",
    )

    @field_validator("exclude_completed", "include_toplevel", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool | None) -> bool:
        """Only "1" switches a flag on."""
        if isinstance(v, bool):
            return v
        return str(v).strip() == "1"

    @field_validator("group_by", mode="before")
    @classmethod
    def normalize_group_by(cls, v: str | GroupBy | None) -> str | GroupBy:
        """Accept GROUP_BY in any case; empty means the default."""
        if isinstance(v, GroupBy):
            return v
        if v is None or str(v).strip() == "":
            return GroupBy.H4
        return str(v).strip().lower()

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def scan_options(self) -> ScanOptions:
        """Scanner filters built from these settings."""
        return ScanOptions(
            exclude_completed=self.exclude_completed,
            include_toplevel=self.include_toplevel,
            group_by=self.group_by,
        )

    def source_path(self, root: Path) -> Path:
        """Absolute path of the source document under root."""
        return (root / self.source_file).expanduser().resolve()


class Settings(ScanSettings):
    """Settings for exporting to a Trello board."""

    trello_key: str = Field(
        ...,
        min_length=1,
        description="Trello API key from https://trello.com/app-key",
    )
    trello_token: str = Field(
        ...,
        min_length=1,
        description="Trello token generated from the app-key page",
    )
    trello_board_id: str = Field(
        ...,
        min_length=1,
        description="Board ID from the board URL (https://trello.com/b/<BOARD_ID>/...)",
    )
    trello_list_id: str | None = Field(
        default=None,
        description="Existing list ID; when set every card goes to this list",
    )
    trello_list_name: str = Field(
        default_factory=_default_list_name,
        description="Display name for the single destination list",
    )

    @field_validator("trello_list_id", mode="before")
    @classmethod
    def empty_list_id(cls, v: str | None) -> str | None:
        """Treat an empty TRELLO_LIST_ID as unset."""
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip()

    @property
    def single_list_mode(self) -> bool:
        """Check if all cards go to one pre-existing list."""
        return self.trello_list_id is not None


def load_settings(
    root: Path | None = None,
    require_trello: bool = True,
) -> ScanSettings:
    """Load settings from environment and .env file.

    Args:
        root: Optional project root; its .env is read if present.
        require_trello: If True, Trello credentials are mandatory and a
            Settings instance is returned.

    Returns:
        Validated settings.

    Raises:
        SystemExit: If required settings are missing or invalid.
    """
    settings_cls = Settings if require_trello else ScanSettings

    env_file = None
    if root:
        env_file = root / ".env"

    try:
        if env_file and env_file.exists():
            # _env_file is a valid pydantic-settings parameter
            return settings_cls(_env_file=env_file)  # type: ignore[call-arg]
        return settings_cls()

    except Exception as e:
        _print_missing_config_help(e)
        sys.exit(1)


def _print_missing_config_help(error: Exception) -> None:
    """Print helpful message for missing configuration."""
    error_str = str(error).lower()
    out = sys.stderr

    print("\n" + "=" * 60, file=out)
    print("mdtrello Configuration Error", file=out)
    print("=" * 60 + "\n", file=out)

    if "trello_" in error_str:
        print(
            "Missing Trello env vars. Please set TRELLO_KEY, TRELLO_TOKEN, "
            "TRELLO_BOARD_ID",
            file=out,
        )
        print("Get your key and token from https://trello.com/app-key", file=out)
        print(file=out)

    if "group_by" in error_str:
        print("GROUP_BY must be one of: h4, h3, h2", file=out)
        print(file=out)

    print("Example .env file:", file=out)
    print("-" * 40, file=out)
    print("TRELLO_KEY=your_key", file=out)
    print("TRELLO_TOKEN=your_token", file=out)
    print("TRELLO_BOARD_ID=your_board_id", file=out)
    print(file=out)
    print("# Optional", file=out)
    print("TRELLO_LIST_ID=existing_list_id", file=out)
    print("EXCLUDE_COMPLETED=1", file=out)
    print("INCLUDE_TOPLEVEL=1", file=out)
    print("GROUP_BY=h3", file=out)
    print("-" * 40, file=out)
    print(file=out)

    # Print the actual validation error for debugging
    print(f"Validation error: {error}", file=out)
    print(file=out)
