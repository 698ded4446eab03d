"""HTML rendering of WML documents."""
