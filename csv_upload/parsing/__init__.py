"""CSV parsing: reader and header normalizer."""
