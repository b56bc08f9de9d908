"""Formatting-preserving edits of pom.xml descriptors."""
