# Database package: lazy engine/session factory and ORM models
