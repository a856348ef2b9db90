"""Infrastructure package - database engine, tables and repositories."""
