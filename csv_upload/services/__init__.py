"""Service layer: parse pipeline, validation, dedup, stats, upload session."""
