"""Lingala.cd learning core API."""
