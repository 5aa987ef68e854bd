"""StickyBoard: draggable note cards with a REST backend and a dashboard."""

__version__ = "0.1.0"
