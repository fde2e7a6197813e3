"""
Common utilities for the Broadway lottery bot
"""
from .config import Config, ConfigError, load_config
from .models import (
    DateOfBirth,
    UserInfo,
    LoginCredentials,
    ShowConfig,
    LotteryReason,
    LotteryResult,
    ShowEntryResult,
    aggregate_results,
)
from .captcha import CaptchaSolver, CaptchaError

__all__ = [
    "Config",
    "ConfigError",
    "load_config",
    "DateOfBirth",
    "UserInfo",
    "LoginCredentials",
    "ShowConfig",
    "LotteryReason",
    "LotteryResult",
    "ShowEntryResult",
    "aggregate_results",
    "CaptchaSolver",
    "CaptchaError",
]
