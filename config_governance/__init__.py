"""Configuration governance engine for tenant page, route, branding and menu configs."""

__version__ = "0.1.0"
