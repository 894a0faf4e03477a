"""Candidate extraction package."""
