"""Service layer: webhook app, Discord gateway, lifespan and CLI."""
