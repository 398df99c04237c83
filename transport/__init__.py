"""Transport layers for messaging platforms."""
