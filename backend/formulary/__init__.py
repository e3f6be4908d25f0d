"""Formula and dependency metadata for Homebrew-style repositories."""

__version__ = "1.0.0"
