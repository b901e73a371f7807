"""
Chatbridge - Multi-channel chat bridge

Normalizes inbound events from external chat platforms, routes outbound
replies back to the owning channel, and strips internal-only markup
before anything leaves the process.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("chatbridge")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
