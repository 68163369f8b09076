"""OwlTrek command-line interface."""

from owltrek import __version__


__all__ = ["__version__"]
