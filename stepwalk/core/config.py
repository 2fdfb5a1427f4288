import os
import sys
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


_ENV_LOADED = False

LOG_LEVELS = ("DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _load_env_file(path: str, allow_override: bool = False) -> None:
    """Load KEY=VALUE lines from path into os.environ, keeping existing keys."""
    try:
        if not path or not os.path.exists(path):
            return
        with open(path, "r", encoding="utf-8") as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):].strip()
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]
                if allow_override or key not in os.environ:
                    os.environ[key] = value
    except FileNotFoundError:
        pass
    except PermissionError as e:
        print(f"FATAL: Permission denied reading environment file {path}: {e}", file=sys.stderr)
        raise


def load_env_if_present(force_reload: bool = False) -> None:
    """
    Load STEPWALK_ENV_FILE if set, otherwise .env.local, .env.{ENVIRONMENT},
    .env.common and .env, earlier files taking precedence.
    """
    global _ENV_LOADED
    if _ENV_LOADED and not force_reload:
        return

    custom = os.environ.get("STEPWALK_ENV_FILE")
    if custom:
        env_files = [custom]
    else:
        env_files = ['.env.local', '.env.common', '.env']
        environment = os.environ.get('ENVIRONMENT', '').strip()
        if environment:
            env_files.insert(1, f'.env.{environment}')

    for env_file in env_files:
        _load_env_file(env_file)

    if not force_reload:
        _ENV_LOADED = True


class IteratorSettings(BaseModel):
    """
    Iteration controller settings from environment variables.

    Every field has a default so the controller works without any
    environment configured. Fields can be given by name or by env alias.
    """
    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    # abort() on a finished run re-overwrites the element and calls done again
    abort_after_finish: bool = Field(default=False, alias="STEPWALK_ABORT_AFTER_FINISH")
    # done([]) is called immediately for an empty sequence
    done_on_empty: bool = Field(default=False, alias="STEPWALK_DONE_ON_EMPTY")

    log_level: str = Field(default="INFO", alias="STEPWALK_LOG_LEVEL")
    log_json: bool = Field(default=False, alias="STEPWALK_LOG_JSON")
    log_location: bool = Field(default=True, alias="STEPWALK_LOG_LOCATION")

    @field_validator('abort_after_finish', 'done_on_empty', 'log_json', 'log_location', mode='before')
    def coerce_bool(cls, v):
        if isinstance(v, bool):
            return v
        if not isinstance(v, str):
            raise ValueError("Expected string for boolean field")
        val = v.strip().lower()
        if val in ("true", "1", "yes", "y", "on"):
            return True
        if val in ("false", "0", "no", "n", "off"):
            return False
        raise ValueError(f"Invalid boolean value: {v}")

    @field_validator('log_level', mode='before')
    def normalize_level(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Value cannot be empty or whitespace only")
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {', '.join(LOG_LEVELS)}")
        return level


_settings: Optional[IteratorSettings] = None


def get_settings(reload: bool = False) -> IteratorSettings:
    """
    Get controller settings. Reads environment variables on first call.
    Set reload=True to force reloading from current environment.
    """
    global _settings
    if _settings is None or reload:
        load_env_if_present(force_reload=reload)
        values = {
            field.alias: os.environ[field.alias]
            for field in IteratorSettings.model_fields.values()
            if field.alias in os.environ
        }
        try:
            _settings = IteratorSettings(**values)
        except Exception as e:
            print(f"FATAL: Failed to initialize settings: {e}", file=sys.stderr)
            raise

    return _settings
