from .base import BaseSource, SearchAggregator
from .piratebay import PirateBaySource
from .x1337 import X1337Source

# Settings name -> provider class.
BUILTIN_SOURCES = {
    "PirateBay": PirateBaySource,
    "1337x": X1337Source,
}

__all__ = [
    "BUILTIN_SOURCES",
    "BaseSource",
    "PirateBaySource",
    "SearchAggregator",
    "X1337Source",
]
