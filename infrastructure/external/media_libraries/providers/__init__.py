"""Built-in media library providers."""
