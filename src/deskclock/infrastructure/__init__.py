"""Infrastructure shared by all modules."""
