"""ePoxy extension service for machine provisioning side effects."""

__version__ = "0.1.0"
