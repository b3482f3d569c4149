"""convexplorer — browse, search and summarize conversation exports."""

__version__ = "0.1.0"
