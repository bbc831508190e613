"""Settings modules for projects built on rallyround."""
