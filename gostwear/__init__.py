"""Gostwear backend: product catalog and user endpoints over flat JSON files."""
