"""Data layer: models, errors, profile loading and the meal inventory."""
