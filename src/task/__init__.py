"""Transcode task run inside the dispatched container."""
