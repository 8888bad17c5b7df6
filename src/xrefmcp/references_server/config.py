"""Configuration management for references server."""

import os
from dataclasses import dataclass


@dataclass
class ReferencesServerConfig:
    """Configuration class for the references server."""

    # MCP Server Configuration
    server_name: str = "XRefMCP References Server"
    project_root: str = "."

    # Index Configuration
    max_file_size_mb: int = 5
    force_reparse: bool = True  # Reparse before searching so unsaved edits are seen

    # Runtime Configuration
    log_level: str = "INFO"
    capture_output: bool = False  # Forward stray native stdout/stderr to the log

    @classmethod
    def from_environment(cls) -> "ReferencesServerConfig":
        """Create configuration from environment variables."""
        return cls(
            # Server Configuration
            server_name=os.getenv("REFERENCES_SERVER_NAME", "XRefMCP References Server"),
            project_root=os.getenv("MCP_FILE_ROOT", "."),
            # Index Configuration
            max_file_size_mb=int(os.getenv("MAX_FILE_SIZE_MB", "5")),
            force_reparse=os.getenv("FIND_USAGES_FORCE_REPARSE", "true").lower() == "true",
            # Runtime Configuration
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            capture_output=os.getenv("CAPTURE_OUTPUT", "false").lower() == "true",
        )

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration settings."""
        errors = []

        if self.max_file_size_mb <= 0:
            errors.append("max_file_size_mb must be positive")

        if not self.server_name:
            errors.append("server_name cannot be empty")

        if not self.project_root:
            errors.append("project_root cannot be empty")

        # Validate log level
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            errors.append(f"log_level must be one of {valid_log_levels}")

        return len(errors) == 0, errors

    def __post_init__(self):
        """Post-initialization validation."""
        is_valid, errors = self.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(errors)}")


# Global configuration instance
_config: ReferencesServerConfig | None = None


def get_config() -> ReferencesServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ReferencesServerConfig.from_environment()
    return _config


def set_config(config: ReferencesServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
