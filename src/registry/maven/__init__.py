"""Maven repository metadata and descriptor access."""
