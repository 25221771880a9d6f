"""
Browser session adapters
"""

from .adapter import BrowserSessionAdapter, NavigationOutcome
from .playwright_adapter import PlaywrightSessionAdapter

__all__ = ['BrowserSessionAdapter', 'NavigationOutcome', 'PlaywrightSessionAdapter']
