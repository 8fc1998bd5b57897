"""HTTP API serving resolved package graphs."""
