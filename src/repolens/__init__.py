"""repolens - tech-stack detection and repository health scoring."""

__version__ = "0.1.0"
