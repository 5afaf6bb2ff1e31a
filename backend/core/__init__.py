"""Domain core: schemas, errors, resilience primitives and advisory rules."""
