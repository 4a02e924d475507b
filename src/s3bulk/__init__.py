"""Bulk upload of a file list into a set of S3-compatible endpoints."""

__version__ = "0.1.0"
