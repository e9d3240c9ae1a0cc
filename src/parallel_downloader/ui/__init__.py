"""Terminal output components."""
