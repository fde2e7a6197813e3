"""
Browser URL helpers for the lottery sites.
"""

BROADWAY_DIRECT_URL = "https://lottery.broadwaydirect.com"
LUCKYSEAT_URL = "https://www.luckyseat.com"
TELECHARGE_URL = "https://rush.telecharge.com"
SOCIALTOASTER_URL = "https://my.socialtoaster.com"
BWAYRUSH_URL = "https://bwayrush.com"


class WebPages:
    """URLs for browser-based automation"""

    @staticmethod
    def luckyseat_login() -> str:
        return f"{LUCKYSEAT_URL}/account/login"

    @staticmethod
    def luckyseat_home() -> str:
        return f"{LUCKYSEAT_URL}/home"

    @staticmethod
    def telecharge_home() -> str:
        return f"{TELECHARGE_URL}/"

    @staticmethod
    def telecharge_lottery_select() -> str:
        return f"{SOCIALTOASTER_URL}/st/lottery_select/?key=BROADWAY&source=iframe"

    @staticmethod
    def bwayrush() -> str:
        return f"{BWAYRUSH_URL}/"


def normalize_broadway_direct_url(href: str) -> str:
    """Make a Broadway Direct lottery link absolute with a trailing slash"""
    url = href.strip()
    if not url.startswith("http"):
        url = f"{BROADWAY_DIRECT_URL}{url}" if url.startswith("/") else f"{BROADWAY_DIRECT_URL}/{url}"
    if not url.endswith("/"):
        url = f"{url}/"
    return url
