# Integration tests: SQLite-backed repositories, Flask app and CLI
