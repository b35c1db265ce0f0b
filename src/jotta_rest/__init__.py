"""Restic REST backend served on top of the Jottacloud file API."""

__version__ = "0.1.0"
