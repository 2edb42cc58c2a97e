"""Generation kernel: drivers, pipeline, writer and shared helpers."""
