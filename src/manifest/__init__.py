"""plugins.txt and pom.xml update drivers."""
