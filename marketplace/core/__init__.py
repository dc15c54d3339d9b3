"""Core domain logic: configuration, errors, sessions, workflow and access policy."""
