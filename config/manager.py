from pathlib import Path
from typing import Dict, Any, Optional, List
from config.types import BackendConfig, CallbackSettings, ServerSettings
import logging
import os


class EnvironmentManager:
    """
    Environment manager holding the workflow server settings.

    Settings are resolved in this order, later sources winning:
    defaults, the first .env file found, the OS environment
    (``WORKFLOW_<SETTING>``), then explicit overrides such as CLI options.
    """

    _instance = None

    ENV_PREFIX = "WORKFLOW_"

    # List of all settings that are paths
    PATH_SETTINGS = [
        "log_dir",
    ]

    # Default settings with their types
    DEFAULT_SETTINGS = {
        # Backend selection
        "provider": (None, str),
        "connection_string": (None, str),
        "db_url": (None, str),
        "database": (None, str),
        # Runtime
        "runtime_id": (None, str),
        "runtime_factory": (None, str),
        "license_key": (None, str),
        "no_start_workflow": (False, bool),
        # Remote callback API
        "callback_api_url": (None, str),
        "callback_gen_scheme": (False, bool),
        "callback_timeout": (30, int),
        # HTTP listener
        "server_host": ("0.0.0.0", str),
        "server_port": (8077, int),
        # Logging
        "log_dir": (".logs", str),
        "log_level": ("INFO", str),
    }

    # Each setting can be set via its prefixed uppercase env var
    ENV_MAPPING = {"WORKFLOW_" + setting.upper(): setting for setting in DEFAULT_SETTINGS.keys()}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize environment with default values"""
        self.env_variables: Dict[str, str] = {}
        self.settings: Dict[str, Any] = {}
        self.env_file: Optional[Path] = None
        self.logger = logging.getLogger(__name__)

        # Initialize settings with default values
        for key, (default_value, _) in self.DEFAULT_SETTINGS.items():
            self.settings[key] = default_value

    def _get_git_root(self) -> Optional[Path]:
        """Try to determine the git root directory

        Returns:
            Path to the git root directory or None if not found
        """
        dir_to_check = Path.cwd()
        for _ in range(10):  # Limit the search depth
            git_dir = dir_to_check / ".git"
            if git_dir.exists() and git_dir.is_dir():
                return dir_to_check

            parent_dir = dir_to_check.parent
            if parent_dir == dir_to_check:  # Reached the root
                break
            dir_to_check = parent_dir

        return None

    def _convert_value(self, value: Any, target_type: type) -> Any:
        """Convert string value to target type"""
        if not isinstance(value, str):
            return value
        if target_type == bool:
            return value.strip().lower() in ("true", "1", "yes", "on")
        if target_type in (int, float):
            return target_type(value) if value.strip() else None
        return value

    def _apply(self, key: str, value: str) -> None:
        """Apply a raw variable if it maps to a setting"""
        self.env_variables[key] = value
        if key in self.ENV_MAPPING:
            setting_name = self.ENV_MAPPING[key]
            _, target_type = self.DEFAULT_SETTINGS[setting_name]
            self.settings[setting_name] = self._convert_value(value, target_type)

    def _candidate_env_files(self) -> List[Path]:
        env_file_paths = [Path.cwd() / ".env"]

        git_root = self._get_git_root()
        if git_root:
            env_file_paths.append(git_root / ".env")

        # Safely handle home directory
        try:
            env_file_paths.append(Path.home() / ".env")
        except (RuntimeError, OSError):
            pass

        return env_file_paths

    def _load_from_env_file(self):
        """Find and load variables from the first .env file found"""
        env_file_paths = self._candidate_env_files()
        for env_path in env_file_paths:
            if env_path.exists() and env_path.is_file():
                self.logger.info(f"Loading environment from: {env_path}")
                self._parse_env_file(env_path)
                self.env_file = env_path
                return

        self.logger.debug(
            "No .env file found, tried: " + ", ".join(str(p) for p in env_file_paths)
        )

    def _parse_env_file(self, env_file_path: Path):
        """Parse a .env file and load variables into environment"""
        with open(env_file_path, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()

                    # Remove quotes if present
                    if (value.startswith('"') and value.endswith('"')) or (
                        value.startswith("'") and value.endswith("'")
                    ):
                        value = value[1:-1]

                    self._apply(key, value)

    def _resolve_paths(self):
        """Resolve path settings relative to the server package"""
        server_root = (Path(__file__).parent.parent / "server").resolve()
        for key in self.PATH_SETTINGS:
            value = self.settings.get(key)
            if value is not None:
                p = Path(value)
                if not p.is_absolute():
                    p = server_root / p
                self.settings[key] = str(p.resolve())

    def load(self):
        """Load all environment information"""
        self._load_from_env_file()

        # OS environment wins over the .env file
        for key, value in os.environ.items():
            self._apply(key, value)

        self._resolve_paths()
        return self

    def update_settings(self, overrides: Dict[str, Any]) -> List[str]:
        """Apply explicit overrides, skipping None values.

        Returns:
            Names of the settings that were changed

        Raises:
            KeyError: If an override names an unknown setting
        """
        updated = []
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in self.DEFAULT_SETTINGS:
                raise KeyError(f"Unknown setting: {key}")
            _, target_type = self.DEFAULT_SETTINGS[key]
            self.settings[key] = self._convert_value(value, target_type)
            updated.append(key)
        if any(key in self.PATH_SETTINGS for key in updated):
            self._resolve_paths()
        return updated

    def get_setting(self, name: str, default: Any = None) -> Any:
        """Get a setting value by name"""
        value = self.settings.get(name)
        return default if value is None else value

    def get_backend_config(self) -> BackendConfig:
        """Get the backend selection. The tag is validated when the backend is built."""
        return BackendConfig(
            tag=(self.get_setting("provider") or "").strip().lower(),
            connection_string=self.get_setting("connection_string"),
            database_url=self.get_setting("db_url"),
            database_name=self.get_setting("database"),
        )

    def get_callback_settings(self) -> CallbackSettings:
        return CallbackSettings(
            api_url=self.get_setting("callback_api_url"),
            generate_scheme=self.get_setting("callback_gen_scheme", False),
            request_timeout=self.get_setting("callback_timeout", 30),
        )

    def get_server_settings(self) -> ServerSettings:
        """Get the resolved server settings.

        Raises:
            pydantic.ValidationError: If runtime_id is not a UUID
        """
        values: Dict[str, Any] = {
            "backend": self.get_backend_config(),
            "callback": self.get_callback_settings(),
            "runtime_factory": self.get_setting("runtime_factory"),
            "license_key": self.get_setting("license_key"),
            "no_start_workflow": self.get_setting("no_start_workflow", False),
            "host": self.get_setting("server_host", "0.0.0.0"),
            "port": self.get_setting("server_port", 8077),
        }
        if self.get_setting("runtime_id"):
            values["runtime_id"] = self.get_setting("runtime_id")
        return ServerSettings(**values)

    def get_log_dir(self) -> str:
        return self.get_setting("log_dir", ".logs")


# Create singleton instance
env_manager = EnvironmentManager()
