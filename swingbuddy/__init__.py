"""SwingBuddy: conversational-state engine for the SwingBuddy chat bot."""

__version__ = "0.1.0"
