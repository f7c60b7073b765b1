"""Minimal hosting surface: activities, storage, streaming and turn processing."""
