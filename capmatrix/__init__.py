"""Capability comparison matrix backend."""
