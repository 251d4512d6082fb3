"""Keyword-line parsing of directory document bodies."""
