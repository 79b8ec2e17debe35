"""Release automation: event routing and the release decider."""

__version__ = "0.4.0"
