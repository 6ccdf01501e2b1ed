"""Turns build briefs into published single-page apps on GitHub Pages."""

__version__ = "0.1.0"
