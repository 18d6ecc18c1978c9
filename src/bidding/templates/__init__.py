"""Boilerplate templates for recognized outline chapters."""

from bidding.templates.registry import clear_cache, get_template, list_templates

__all__ = ["clear_cache", "get_template", "list_templates"]
