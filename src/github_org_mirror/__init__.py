"""GitHub Org Mirror - incremental mirror of a GitHub organization's activity."""

__version__ = "0.1.0"
