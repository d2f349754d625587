# Core package initialization
# Cross-cutting concerns: configuration, logging, security, errors, clock.
