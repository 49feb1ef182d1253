"""zipindex - recursive ZIP/JAR indexing into a queryable file index."""

__version__ = "0.1.0"
