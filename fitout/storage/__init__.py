"""Uploaded file storage."""
