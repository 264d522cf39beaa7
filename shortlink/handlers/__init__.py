"""Redirect entrypoints for deployments outside the main application server."""
