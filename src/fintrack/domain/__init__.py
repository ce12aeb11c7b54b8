"""Domain layer: repository protocols and error types."""
