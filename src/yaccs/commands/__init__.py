"""Command groups for the yaccs CLI."""
