"""Schema derivation: tag parsing, field variants, models and registration."""
