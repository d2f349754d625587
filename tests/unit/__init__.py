# Unit tests: domain rules, services and DTOs in isolation
