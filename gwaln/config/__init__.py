"""Configuration: YAML analyzer settings and dotenv-backed secrets."""
