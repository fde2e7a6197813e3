import pytest

from broadway_lottery.common.config import BrowserConfig, Config, PacingConfig
from broadway_lottery.common.models import DateOfBirth, LoginCredentials, UserInfo


@pytest.fixture()
def user():
    return UserInfo(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        zip="10036",
        number_of_tickets="2",
        date_of_birth=DateOfBirth(month="01", day="15", year="1990"),
    )


@pytest.fixture()
def config(user):
    return Config(
        user=user,
        luckyseat=LoginCredentials(email="jane@example.com", password="lucky"),
        telecharge=LoginCredentials(email="jane@example.com", password="tele"),
        browser=BrowserConfig(headless=True, hold_seconds=0),
        pacing=PacingConfig(max_break_ms=1, between_shows_ms=0),
    )


@pytest.fixture()
def env():
    return {
        "FIRST_NAME": "Env",
        "LAST_NAME": "User",
        "EMAIL": "env@example.com",
        "ZIP": "10019",
        "DOB_MONTH": "12",
        "DOB_DAY": "31",
        "DOB_YEAR": "1985",
    }
