"""Digest lookups against dated archive files."""
