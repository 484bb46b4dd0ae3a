"""Version information for neo-rbac."""

__version__ = "1.0.0"
