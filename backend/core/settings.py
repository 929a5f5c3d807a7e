"""
Settings management
Reads project configuration from config/config.toml and exposes typed accessors
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.toml"
DEFAULT_DB_PATH = Path.home() / ".config" / "day-planner" / "planner.db"


def get_project_config_path() -> Path:
    """Get project configuration file path

    PLANNER_CONFIG overrides the bundled config.toml (used by tests and deployments).
    """
    override = os.environ.get("PLANNER_CONFIG", "").strip()
    config_file = Path(override) if override else DEFAULT_CONFIG_PATH

    if not config_file.exists():
        raise FileNotFoundError(f"Project config file not found: {config_file}")

    return config_file


def load_project_config() -> dict:
    """Load project configuration directly from the project config file"""
    with open(get_project_config_path(), "r", encoding="utf-8") as f:
        return toml.load(f)


class Settings:
    """Read-only view over config.toml with dotted-key access"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = config if config is not None else load_project_config()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dotted key

        Args:
            key: Dotted key such as "llm.model"
            default: Value returned when any segment is missing

        Returns:
            Configured value or default
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_database_path(self) -> Path:
        configured = str(self.get("database.path", "") or "").strip()
        return Path(configured).expanduser() if configured else DEFAULT_DB_PATH

    def get_llm_settings(self) -> Dict[str, Any]:
        """LLM endpoint settings with the API key resolved from the environment"""
        api_key_env = self.get("llm.api_key_env", "PLANNER_LLM_API_KEY")
        return {
            "base_url": str(self.get("llm.base_url", "https://api.openai.com/v1")).rstrip("/"),
            "model": self.get("llm.model", "gpt-4o-mini"),
            "max_tokens": int(self.get("llm.max_tokens", 1024)),
            "temperature": float(self.get("llm.temperature", 0.7)),
            "timeout_seconds": float(self.get("llm.timeout_seconds", 60)),
            "max_retries": int(self.get("llm.max_retries", 2)),
            "api_key": os.environ.get(api_key_env, ""),
        }

    def get_auth_settings(self) -> Dict[str, Any]:
        """JWT verification settings with the secret resolved from the environment"""
        secret_env = self.get("auth.jwt_secret_env", "PLANNER_JWT_SECRET")
        return {
            "jwt_secret": os.environ.get(secret_env, ""),
            "jwt_algorithm": self.get("auth.jwt_algorithm", "HS256"),
            "allow_dev_header": bool(self.get("auth.allow_dev_header", False)),
        }

    def get_planning_settings(self) -> Dict[str, Any]:
        return {
            "default_days_ahead": int(self.get("planning.default_days_ahead", 1)),
            "recent_sessions_limit": int(self.get("planning.recent_sessions_limit", 10)),
        }


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global Settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
