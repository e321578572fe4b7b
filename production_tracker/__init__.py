"""Production batch progress / completion tracker."""

__version__ = "0.1.0"
