"""Business registration review, hierarchy and promotions service."""

__version__ = "1.0.0"
