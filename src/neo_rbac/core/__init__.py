"""Core building blocks shared by every neo-rbac feature."""
