"""Services module for Polmodor - business logic and platform boundaries."""
