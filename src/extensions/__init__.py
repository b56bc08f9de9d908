"""Capabilities published by build extensions and rules checking them."""
