"""Source hosting clients used for commit ancestry checks."""
