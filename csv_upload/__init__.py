"""CSV upload tool: parse, validate and upload a single CSV file."""
