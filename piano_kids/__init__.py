"""Piano Kids - real-time solfège note detection and sequence scoring."""

__version__ = "0.1.0"
