"""Manage maven packages hosted on a GitHub package registry."""
