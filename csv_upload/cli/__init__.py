"""Command line interface (python -m csv_upload.cli)."""
