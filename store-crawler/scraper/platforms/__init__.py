from .base import BaseScraper, DocumentQuery, RenderingSession, launch_stealth_browser
from .costco import CostcoScraper
from .dollar_general import DollarGeneralScraper

__all__ = [
    "BaseScraper",
    "CostcoScraper",
    "DocumentQuery",
    "DollarGeneralScraper",
    "RenderingSession",
    "launch_stealth_browser",
]
