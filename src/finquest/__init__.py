"""FinQuest API: gamified personal-finance learning backend."""

__version__ = "0.1.0"
