"""meowda: named Python virtual environment stores backed by uv."""

__version__ = "0.1.0"
