"""Utilities for rscapture."""
