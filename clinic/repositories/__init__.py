# Repository implementations: SQLAlchemy-backed and in-memory
