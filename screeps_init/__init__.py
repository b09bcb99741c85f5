"""Container bring-up for the Screeps server image."""

__version__ = "0.3.0"
