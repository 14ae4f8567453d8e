"""simshot - iOS simulator screenshots for AI coding assistants."""

__version__ = "0.1.0"
