"""Configuration management for the feed syndicator."""

from .settings import DEFAULT_DUAL_LOCALE_SUBJECTS, SyndicatorConfig

__all__ = ["DEFAULT_DUAL_LOCALE_SUBJECTS", "SyndicatorConfig"]
