"""Domain layer packages."""
