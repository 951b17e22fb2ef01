"""Core application services for icon-converter."""
