"""
Broadway Lottery Bot

Enters Broadway ticket lotteries on three sites through a real browser:

1. Broadway Direct (broadway_lottery.browser.broadway_direct)
   - One lottery page per show, no login
   - Waits out the reCAPTCHA passively

2. Lucky Seat (broadway_lottery.browser.luckyseat)
   - Login-gated, performance selection by day and time
   - Solves the reCAPTCHA through 2Captcha

3. Telecharge (broadway_lottery.browser.telecharge)
   - App embedded in an iframe
   - Enters through the page's own enter_event() function
"""
from .common.config import Config, load_config

__version__ = "1.0.0"

__all__ = [
    "Config",
    "load_config",
]
