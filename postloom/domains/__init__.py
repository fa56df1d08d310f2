"""Domain layer: business logic behind protocol seams."""
