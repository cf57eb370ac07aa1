"""Penguin Video Studio — image/text to video via the DashScope Wan 2.5 models."""

__version__ = "0.1.0"
