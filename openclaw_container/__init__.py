"""Configuration synthesis for the OpenClaw container."""

__version__ = "0.1.0"
