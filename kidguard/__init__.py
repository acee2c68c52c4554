"""KidGuard - age-banded content safety and readability filtering."""

__version__ = "1.0.0"
