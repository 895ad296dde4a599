"""Domain contracts (request/response shapes) and error types."""
