"""OpenAPI and Swagger document loading."""
