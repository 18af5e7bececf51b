"""Gate merges on the completion of every other GitHub commit status and check run."""

__version__ = "0.1.0"