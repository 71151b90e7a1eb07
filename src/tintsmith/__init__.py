"""TintSmith: 9-step tint/shade palettes for Lunacy documents and JSON color files."""

__version__ = "0.3.0"
