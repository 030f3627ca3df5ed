"""Logging and audit trail."""
