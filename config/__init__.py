"""Settings modules, one per environment, picked by APP_ENV."""

import os

_ENVIRONMENTS = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    """Dotted name of the settings module; unknown or unset APP_ENV means development."""
    env = os.getenv("APP_ENV", "development").strip().lower()
    return _ENVIRONMENTS.get(env, "config.development")
