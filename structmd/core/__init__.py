"""GUI-agnostic editing core: models, codecs and editing services."""
