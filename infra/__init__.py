"""Infrastructure adapters – concrete implementations of domain ports."""

from .browser import PlaywrightBrowserSession, PlaywrightPageDriver
from .config import FileSystemConfigProvider
from .logs import FileSystemDiagnosticSink
from .runtime import StructuredLogger, SystemClock, UuidIdGenerator

__all__ = [
    "PlaywrightBrowserSession",
    "PlaywrightPageDriver",
    "FileSystemConfigProvider",
    "FileSystemDiagnosticSink",
    "SystemClock",
    "UuidIdGenerator",
    "StructuredLogger",
]
