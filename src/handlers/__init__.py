"""Lambda entrypoints. ``handlers.main`` is the one API Gateway invokes."""
