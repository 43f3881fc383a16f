"""Per-page comment threads backed by Redis, moderated through Akismet."""

__version__ = "0.1.0"
