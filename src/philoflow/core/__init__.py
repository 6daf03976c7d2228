"""Core composition engine for philoflow."""
