"""Configuration management for the chat relay."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

CONFIG_PATH_ENV = "CHAT_RELAY_CONFIG"
API_KEY_ENV = "DOUBAO_API_KEY"


class Configuration:
    """Manages configuration and environment variables for the chat relay."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self._config = self._load_yaml_config(config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def default_config_path() -> str:
        """Path of the YAML file, honouring the CHAT_RELAY_CONFIG override."""
        return os.getenv(CONFIG_PATH_ENV) or os.path.join(
            os.path.dirname(__file__), "config.yaml"
        )

    def _load_yaml_config(self, config_path: str | None) -> dict[str, Any]:
        """Load configuration from YAML file."""
        path = config_path or self.default_config_path()
        with open(path, encoding="utf-8") as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Configuration":
        """Build a configuration from an in-memory dict (tests, embedding)."""
        instance = cls.__new__(cls)
        instance._config = config
        return instance

    @property
    def upstream_api_key(self) -> str:
        """Get the API key for the completion provider.

        Raises:
            ValueError: If the API key is not found in environment variables.
        """
        api_key = os.getenv(API_KEY_ENV)
        if not api_key:
            raise ValueError(
                f"API key '{API_KEY_ENV}' not found in environment variables"
            )
        return api_key

    @staticmethod
    def _require(section: dict[str, Any], keys: list[str], path: str) -> None:
        for key in keys:
            if key not in section:
                raise ValueError(
                    f"{path}.{key} must be explicitly configured in config.yaml"
                )

    def get_upstream_config(self) -> dict[str, Any]:
        """Get completion provider configuration from YAML.

        Returns:
            Upstream configuration with base_url, model and default prompt.

        Raises:
            ValueError: If required upstream parameters are missing.
        """
        upstream_config = self._config.get("upstream", {})
        self._require(
            upstream_config,
            ["base_url", "model", "default_system_prompt"],
            "upstream",
        )

        if not upstream_config["default_system_prompt"]:
            raise ValueError("upstream.default_system_prompt must not be empty")

        return upstream_config

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP client timeout configuration for the upstream call.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required timeouts are missing or not positive.
        """
        http_config = self.get_upstream_config().get("http_client", {})

        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
        ]
        self._require(http_config, required_keys, "upstream.http_client")

        for key in required_keys:
            if http_config[key] <= 0:
                raise ValueError(f"upstream.http_client.{key} must be positive")

        return http_config

    def get_streaming_config(self) -> dict[str, Any]:
        """Get SSE streaming configuration from YAML.

        Raises:
            ValueError: If required streaming parameters are missing or invalid.
        """
        streaming_config = self._config.get("streaming", {})
        self._require(
            streaming_config,
            ["start_message", "ping_interval", "send_buffer_size"],
            "streaming",
        )

        if streaming_config["ping_interval"] <= 0:
            raise ValueError("streaming.ping_interval must be positive")
        if streaming_config["send_buffer_size"] < 0:
            raise ValueError("streaming.send_buffer_size must be non-negative")

        return streaming_config

    def get_server_config(self) -> dict[str, Any]:
        """Get HTTP server configuration from YAML.

        Raises:
            ValueError: If required server parameters are missing.
        """
        server_config = self._config.get("server", {})
        self._require(
            server_config, ["host", "port", "graphql_path", "cors"], "server"
        )

        cors_config = server_config["cors"]
        self._require(
            cors_config,
            ["allow_origins", "allow_methods", "allow_headers"],
            "server.cors",
        )

        if not server_config["graphql_path"].startswith("/"):
            raise ValueError("server.graphql_path must start with '/'")

        return server_config

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})
