"""Volume lifecycle engine, GID allocation and metadata store."""
