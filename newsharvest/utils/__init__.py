"""Configuration, logging and runtime helpers."""
