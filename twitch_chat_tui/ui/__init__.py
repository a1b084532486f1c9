"""Terminal rendering: wrapping, frame building, the terminal surface and
the render loop thread."""
