"""Bundled vocabulary content."""
