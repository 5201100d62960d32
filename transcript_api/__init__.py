"""YouTube transcript fetching, storage and translation service"""

__version__ = "1.0.0"
