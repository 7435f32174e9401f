"""Export markdown checklists to Trello boards."""

__version__ = "0.1.0"
