"""DeepVest backend: versioned project pages with per-project access control."""

__version__ = "1.0.0"
