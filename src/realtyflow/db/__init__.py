"""Database layer: models, sessions and repositories."""
