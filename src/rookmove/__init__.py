"""rookmove: move selection for automated chess players."""

__version__ = "0.1.0"
