"""Version ordering, artifact models and update resolution."""
