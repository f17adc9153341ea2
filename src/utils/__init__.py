"""Shared helpers: call logging and configuration validation."""
