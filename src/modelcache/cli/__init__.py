"""Command-line interface for the model cache."""
