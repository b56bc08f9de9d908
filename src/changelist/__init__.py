"""Computing changelist identifiers from git checkouts."""
