"""
Browser automation for the lottery sites
"""
from .base import BrowserBot, LotteryBot, EntryError
from .broadway_direct import BroadwayDirectBot
from .luckyseat import LuckySeatBot
from .telecharge import TelechargeBot
from .discovery import ShowDiscoveryBot

__all__ = [
    "BrowserBot",
    "LotteryBot",
    "EntryError",
    "BroadwayDirectBot",
    "LuckySeatBot",
    "TelechargeBot",
    "ShowDiscoveryBot",
]
