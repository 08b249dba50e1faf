"""Process-wide infrastructure: database session factory and logging."""
