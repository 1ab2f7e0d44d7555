"""Runtime settings with environment variable overrides"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from .constants import Constants
from .errors import ConfigurationError

ENV_PREFIX = "SMS_PARSER_"


class Settings(BaseModel):
    lookback_days: int = Field(default=Constants.Scan.DEFAULT_LOOKBACK_DAYS, ge=0)
    max_messages: int = Field(default=Constants.Scan.DEFAULT_MAX_MESSAGES, gt=0)
    currency: str = Constants.Parsing.DEFAULT_CURRENCY
    database_url: str = "sqlite:///sms_transactions.db"
    log_level: str = "INFO"
    log_json: bool = False


def load_settings(environ: Optional[Dict[str, str]] = None, **overrides: Any) -> Settings:
    """
    Builds Settings from SMS_PARSER_* environment variables and explicit overrides.

    Raises:
        ConfigurationError: If a value does not validate
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for name in Settings.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
