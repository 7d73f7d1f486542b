from .playwright_driver import PlaywrightPageDriver
from .playwright_session import PlaywrightBrowserSession

__all__ = [
    "PlaywrightBrowserSession",
    "PlaywrightPageDriver",
]
