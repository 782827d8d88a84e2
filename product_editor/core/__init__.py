"""Core module - Draft sync, validation, payload builders and the save pipeline."""
