"""Scaffold CLI."""
