"""
Configuration management for the Broadway lottery bot
"""
import os
import yaml
from pathlib import Path
from typing import Optional, List, Mapping
from pydantic import BaseModel, Field

from .models import DateOfBirth, LoginCredentials, UserInfo


class ConfigError(RuntimeError):
    """Raised when a required setting is missing"""


TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in TRUTHY


class CaptchaConfig(BaseModel):
    api_key: Optional[str] = None
    api_base: str = "https://api.2captcha.com"
    poll_interval: float = 5.0
    timeout: float = 180.0
    passive_wait_seconds: float = 30.0


class BrowserConfig(BaseModel):
    headless: bool = False
    keep_open: bool = False
    slow_mo: int = 0
    user_agent: Optional[str] = None
    stealth: bool = True
    timeout_ms: int = 60000
    hold_seconds: float = 5.0
    args: List[str] = Field(default_factory=lambda: [
        "--disable-blink-features=AutomationControlled",
    ])
    ci_args: List[str] = Field(default_factory=lambda: [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--no-first-run",
        "--no-zygote",
        "--disable-gpu",
    ])
    ci: bool = False

    @property
    def launch_args(self) -> List[str]:
        if self.ci:
            return list(self.args) + [a for a in self.ci_args if a not in self.args]
        return list(self.args)


class ShowsConfig(BaseModel):
    broadway_direct: str = "shows/broadway-direct.json"
    luckyseat: str = "shows/luckyseat.json"
    telecharge: str = "shows/telecharge.json"
    filter: Optional[str] = None


class PacingConfig(BaseModel):
    max_break_ms: int = 1000
    between_shows_ms: int = 1000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    """Main configuration class"""
    user: UserInfo
    luckyseat: Optional[LoginCredentials] = None
    telecharge: Optional[LoginCredentials] = None
    captcha: CaptchaConfig = Field(default_factory=CaptchaConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    shows: ShowsConfig = Field(default_factory=ShowsConfig)
    pacing: PacingConfig = Field(default_factory=PacingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration from environment variables"""
        env = os.environ if env is None else env
        return cls(
            user=UserInfo(
                first_name=env["FIRST_NAME"],
                last_name=env["LAST_NAME"],
                email=env["EMAIL"],
                zip=env["ZIP"],
                number_of_tickets=env.get("NUMBER_OF_TICKETS", "2"),
                date_of_birth=DateOfBirth(
                    month=env["DOB_MONTH"],
                    day=env["DOB_DAY"],
                    year=env["DOB_YEAR"],
                ),
                country_of_residence=env.get("COUNTRY_OF_RESIDENCE", "United States"),
            ),
            luckyseat=_credentials_from_env(env, "LUCKYSEAT"),
            telecharge=_credentials_from_env(env, "TELECHARGE"),
        ).with_env_overrides(env)

    def with_env_overrides(self, env: Optional[Mapping[str, str]] = None) -> "Config":
        """Overlay run-mode environment flags on top of any config source"""
        env = os.environ if env is None else env
        updated = self.model_copy(deep=True)

        # any non-empty CI value other than an explicit false counts
        if env.get("CI", "").strip().lower() not in ("", "0", "false", "no"):
            updated.browser.ci = True
            updated.browser.headless = True
        if "KEEP_BROWSER_OPEN" in env:
            updated.browser.keep_open = _env_flag(env, "KEEP_BROWSER_OPEN")
        if env.get("SHOWS"):
            updated.shows.filter = env["SHOWS"]
        if env.get("CAPTCHA_API_KEY"):
            updated.captcha.api_key = env["CAPTCHA_API_KEY"]

        return updated

    def require_login(self, site: str) -> LoginCredentials:
        creds = getattr(self, site, None)
        if creds is None:
            raise ConfigError(
                f"No {site} credentials configured. "
                f"Set {site.upper()}_EMAIL and {site.upper()}_PASSWORD."
            )
        return creds

    def to_yaml(self, path: str | Path):
        """Save configuration to YAML file"""
        path = Path(path)
        with open(path, 'w') as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)


def _credentials_from_env(env: Mapping[str, str], prefix: str) -> Optional[LoginCredentials]:
    email = env.get(f"{prefix}_EMAIL")
    password = env.get(f"{prefix}_PASSWORD")
    if email and password:
        return LoginCredentials(email=email, password=password)
    return None


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from file or environment"""
    if path:
        return Config.from_yaml(path).with_env_overrides()

    # Try default locations
    default_paths = [
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path.home() / ".broadway-lottery" / "config.yaml",
    ]

    for p in default_paths:
        if p.exists():
            return Config.from_yaml(p).with_env_overrides()

    # Fall back to environment variables
    try:
        return Config.from_env()
    except KeyError as e:
        raise ConfigError(
            f"No config file found and missing environment variable: {e}. "
            f"Create config/config.yaml or set FIRST_NAME, LAST_NAME, EMAIL, ZIP "
            f"and DOB_* environment variables."
        )
