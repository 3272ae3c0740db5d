"""Mirror GitHub Discussions and a Discord forum channel."""

__version__ = "0.1.0"
