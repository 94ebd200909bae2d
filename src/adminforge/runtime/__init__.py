"""Runtime glue: sessions, SQLite storage, templates and page routes."""
