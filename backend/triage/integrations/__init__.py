"""Thin clients for external collaborators."""
