"""Core layer - enums, errors, configuration, logging and pooling."""
