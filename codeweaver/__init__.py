"""CodeWeaver: codebase intelligence engine (project index + code maps)."""

__version__ = "0.3.0"
