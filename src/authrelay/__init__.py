"""authrelay: OAuth relay for headless clients and Headscale device registration."""
