"""Core infrastructure: configuration, logging, authentication."""
