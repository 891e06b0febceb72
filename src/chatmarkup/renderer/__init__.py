"""Renderer package."""
