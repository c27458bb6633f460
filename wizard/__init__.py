"""Profile completion wizard: steps, validation, and navigation."""
