"""Echo: a Discord assistant that asks before it answers."""

__version__ = "0.1.0"
