"""Integrations with the authorization server."""
