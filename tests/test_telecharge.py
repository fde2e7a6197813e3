"""
Tests for the Telecharge driver (broadway_lottery/browser/telecharge.py)
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from broadway_lottery.browser.base import EntryError
from broadway_lottery.browser.telecharge import ENTER_EVENT_SCRIPT, TelechargeBot
from broadway_lottery.common.config import Config, ConfigError
from broadway_lottery.common.models import LotteryReason, ShowConfig


@pytest.fixture()
def frame():
    frame = MagicMock()
    frame.url = "https://my.socialtoaster.com/st/lottery_select/?key=BROADWAY&source=iframe"
    frame.wait_for_selector = AsyncMock()
    frame.evaluate = AsyncMock(return_value=True)
    return frame


@pytest.fixture()
def bot(config, frame):
    bot = TelechargeBot(config)
    bot.pause = AsyncMock()
    bot.login = AsyncMock(return_value=frame)
    bot._settle = AsyncMock()
    bot.navigate_to_lottery_page = AsyncMock(return_value=True)
    bot.body_text = AsyncMock(return_value="select your lotteries")
    bot.random_break = AsyncMock()
    return bot


def show_card():
    card = MagicMock()
    card.locator.return_value.first = AsyncMock()
    return card


class TestSetup:
    def test_requires_credentials(self, user):
        with pytest.raises(ConfigError, match="TELECHARGE_EMAIL"):
            TelechargeBot(Config(user=user))


class TestEnterLotteries:
    @pytest.mark.asyncio
    async def test_login_failure(self, bot):
        bot.login.return_value = None

        result = await bot.run([ShowConfig(name="Art")])

        assert result.reason == LotteryReason.FAILED
        assert result.message == "Failed to login to Telecharge"

    @pytest.mark.asyncio
    async def test_closed(self, bot):
        bot.body_text.return_value = "we're sorry! no drawings are available at this time."
        bot.enter_show = AsyncMock()

        result = await bot.run([ShowConfig(name="Art")])

        assert result.reason == LotteryReason.CLOSED
        bot.enter_show.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_disabled(self, bot):
        bot.enter_show = AsyncMock()

        result = await bot.run([ShowConfig(name="Art", num_tickets=0)])

        assert result.success is True
        assert result.message == "No shows to enter (all disabled)"
        bot.enter_show.assert_not_called()

    @pytest.mark.asyncio
    async def test_enters_enabled_shows_and_continues(self, bot, frame):
        bot.enter_show = AsyncMock(side_effect=[
            (True, "Successfully entered lottery for: Art"),
            EntryError("Could not find lottery entry for show: Chess"),
            (False, "Error entering lottery for: Ragtime"),
        ])
        shows = [
            ShowConfig(name="Art", num_tickets=1),
            ShowConfig(name="Chess"),
            ShowConfig(name="Mamma Mia!", num_tickets=0),
            ShowConfig(name="Ragtime", num_tickets=2),
        ]

        result = await bot.run(shows)

        assert [c.args for c in bot.enter_show.await_args_list] == [
            (frame, "Art", "1"),
            (frame, "Chess", "2"),
            (frame, "Ragtime", "2"),
        ]
        assert [r.success for r in bot.results] == [True, False, False]
        assert bot.results[1].message == "Could not find lottery entry for show: Chess"
        assert bot.random_break.await_count == 3
        assert result.success is True
        assert result.message.startswith("Entered 1/3 lotteries (some failed)")


class TestFindShow:
    @pytest.mark.asyncio
    async def test_finds_event_id(self, bot, frame):
        art, mamma_mia = MagicMock(), MagicMock()
        card = MagicMock()
        card.locator.return_value.first.get_attribute = AsyncMock(
            return_value="enter_event(555); return false;"
        )
        mamma_mia.locator.return_value.first = card
        frame.locator.return_value.all = AsyncMock(return_value=[art, mamma_mia])
        bot.text_of = AsyncMock(side_effect=["Art", "MAMMA MIA!"])

        event_id, found = await bot.find_show(frame, "Mamma Mia!")

        assert event_id == "555"
        assert found is card
        art.locator.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_show(self, bot, frame):
        frame.locator.return_value.all = AsyncMock(return_value=[MagicMock()])
        bot.text_of = AsyncMock(return_value="Art")

        with pytest.raises(EntryError, match="Could not find lottery entry for show: Chess"):
            await bot.find_show(frame, "Chess")


class TestEnterShow:
    @pytest.mark.asyncio
    async def test_already_entered(self, bot, frame):
        bot.find_show = AsyncMock(return_value=("123", show_card()))
        bot.is_visible = AsyncMock(return_value=True)

        assert await bot.enter_show(frame, "Art", "2") == (True, "Already entered lottery for: Art")
        frame.evaluate.assert_not_called()

    @pytest.mark.asyncio
    async def test_clicks_enter_button(self, bot, frame):
        card = show_card()
        bot.find_show = AsyncMock(return_value=("123", card))
        # entered marker, ticket select, enter button, entered marker after entry
        bot.is_visible = AsyncMock(side_effect=[False, True, True, True])

        success, message = await bot.enter_show(frame, "Art", "1")

        assert (success, message) == (True, "Successfully entered lottery for: Art")
        card.locator.return_value.first.select_option.assert_awaited_once_with("1")
        card.locator.return_value.first.click.assert_awaited_once()
        frame.evaluate.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_enter_event(self, bot, frame):
        bot.find_show = AsyncMock(return_value=("123", show_card()))
        bot.is_visible = AsyncMock(side_effect=[False, False, False, False])
        bot.body_text = AsyncMock(return_value="lottery entered! good luck")

        success, message = await bot.enter_show(frame, "Art", "2")

        assert success is True
        assert message == "Successfully entered lottery for: Art"
        frame.evaluate.assert_awaited_once_with(
            ENTER_EVENT_SCRIPT, {"eventId": "123", "numTickets": "2"}
        )

    @pytest.mark.asyncio
    async def test_enter_event_unavailable(self, bot, frame):
        bot.find_show = AsyncMock(return_value=("123", show_card()))
        bot.is_visible = AsyncMock(return_value=False)
        frame.evaluate.return_value = False

        with pytest.raises(EntryError, match="enter_event is not available"):
            await bot.enter_show(frame, "Art", "2")

    @pytest.mark.asyncio
    async def test_error_text(self, bot, frame):
        bot.find_show = AsyncMock(return_value=("123", show_card()))
        bot.is_visible = AsyncMock(return_value=False)
        bot.body_text = AsyncMock(return_value="sorry, this lottery is not available")

        assert await bot.enter_show(frame, "Art", "2") == (
            False, "Error entering lottery for: Art",
        )

    @pytest.mark.asyncio
    async def test_unclear_confirmation(self, bot, frame):
        bot.find_show = AsyncMock(return_value=("123", show_card()))
        bot.is_visible = AsyncMock(return_value=False)
        bot.body_text = AsyncMock(return_value="art chess ragtime")

        success, message = await bot.enter_show(frame, "Art", "2")

        assert success is True
        assert "confirmation unclear" in message


class TestLogin:
    @pytest.fixture()
    def login_bot(self, config, frame):
        bot = TelechargeBot(config)
        bot.page = MagicMock()
        bot.page.goto = AsyncMock()
        bot.page.wait_for_selector = AsyncMock()
        handle = MagicMock(content_frame=AsyncMock(return_value=frame))
        bot.page.locator.return_value.element_handle = AsyncMock(return_value=handle)
        frame.locator.return_value.first = AsyncMock()
        frame.wait_for_load_state = AsyncMock()
        bot.pause = AsyncMock()
        bot._settle = AsyncMock()
        bot.dismiss_cookie_banner = AsyncMock()
        bot.first_visible = AsyncMock(return_value=AsyncMock())
        bot.body_text = AsyncMock(return_value="welcome back jane")
        return bot

    @pytest.mark.asyncio
    async def test_success(self, login_bot, frame):
        # email field, password field, submit button, login container
        login_bot.is_visible = AsyncMock(side_effect=[True, True, True, False])

        assert await login_bot.login() is frame
        fields = frame.locator.return_value.first
        assert [c.args[0] for c in fields.fill.await_args_list] == ["jane@example.com", "tele"]
        fields.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_modal_still_open(self, login_bot, frame):
        login_bot.is_visible = AsyncMock(return_value=True)

        assert await login_bot.login() is None
        frame.locator.assert_any_call("#st_login_container")

    @pytest.mark.asyncio
    async def test_wrong_password(self, login_bot):
        login_bot.is_visible = AsyncMock(side_effect=[True, True, True, False])
        login_bot.body_text.return_value = "the password you entered is wrong"

        assert await login_bot.login() is None

    @pytest.mark.asyncio
    async def test_no_sign_in_link(self, login_bot):
        login_bot.first_visible = AsyncMock(return_value=None)
        login_bot.is_visible = AsyncMock()

        assert await login_bot.login() is None
        login_bot.is_visible.assert_not_called()

    @pytest.mark.asyncio
    async def test_iframe_never_loads(self, login_bot):
        login_bot.page.wait_for_selector.side_effect = PlaywrightError("Timeout 30000ms exceeded")

        assert await login_bot.login() is None
        login_bot._settle.assert_not_called()
