"""Textual browser for resolved package graphs."""
