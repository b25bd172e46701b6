"""Small text and statistics helpers shared across the pipeline."""
