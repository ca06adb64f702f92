"""Analysis cache: content hashing and freshness probe."""
