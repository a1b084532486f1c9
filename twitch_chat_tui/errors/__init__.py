"""Error hierarchy and error-logging helpers."""
