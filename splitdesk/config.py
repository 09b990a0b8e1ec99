
import os
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; splitdesk/.env remains a local override fallback.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_int_env(*names: str, default: int) -> int:
    """Parses the first non-empty env var in `names` as int, else returns `default`."""
    raw = _first_non_empty_env(*names, default=str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _expenses_api_url(default: str = "http://localhost:8080") -> str:
    """
    Resolves the base URL of the expenses backend.

    Preferred var:
      EXPENSES_API_URL

    Alias used by the web front-end:
      API_BASE_URL

    `default` applies when neither is set (empty in production).
    Trailing slashes are stripped so paths can be appended directly.
    """
    url = _first_non_empty_env(
        "EXPENSES_API_URL",
        "API_BASE_URL",
        default=default,
    )
    return url.rstrip("/")


class BaseConfig:

    SECRET_KEY: str = _first_non_empty_env(
        "SECRET_KEY",
        default="change-me-in-production",
    )

    JSON_SORT_KEYS: bool = False

    # External expenses backend (POST {EXPENSES_API_URL}/api/expenses).
    EXPENSES_API_URL: str = _expenses_api_url()
    EXPENSES_API_TIMEOUT: int = _parse_int_env("EXPENSES_API_TIMEOUT", default=10)

    # Sent with every expense when the caller does not name a currency.
    DEFAULT_CURRENCY: str = _first_non_empty_env("DEFAULT_CURRENCY", default="USD")


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    # Tests never reach a real backend; the client is patched.
    EXPENSES_API_URL: str = "http://expenses.test"
    EXPENSES_API_TIMEOUT: int = 1


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False

    # No localhost fallback in production: an unset URL fails validation.
    EXPENSES_API_URL: str = _expenses_api_url(default="")


def validate_production_config(app) -> None:
    """
    Fail-fast guard for production configuration.

    Must be called in the app factory immediately after
    app.config.from_object(ProductionConfig):

        app.config.from_object(ProductionConfig)
        validate_production_config(app)   # raises ValueError if misconfigured

    Raises ValueError if any required production value is missing or insecure.
    """
    if not app.config.get("EXPENSES_API_URL"):
        raise ValueError(
            "EXPENSES_API_URL environment variable is required in production. "
            "Set it to the base URL of the expenses backend."
        )
    if app.config.get("SECRET_KEY") == "change-me-in-production":
        raise ValueError(
            "SECRET_KEY must be set to a strong random value in production. "
            "Do not use the default placeholder."
        )
    if app.config.get("EXPENSES_API_TIMEOUT", 0) <= 0:
        raise ValueError("EXPENSES_API_TIMEOUT must be a positive number of seconds.")


# ── Config selector ────────────────────────────────────────────────────────
#
# Used by the app factory:
#   from splitdesk.config import config_by_name
#   app.config.from_object(config_by_name[flask_env])
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}

# Resolves the active config class from FLASK_ENV; defaults to development.
ActiveConfig: type[BaseConfig] = config_by_name.get(
    os.getenv("FLASK_ENV", "development"),
    DevelopmentConfig,
)
