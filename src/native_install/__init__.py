"""Install build artifacts into standard Unix installation directories."""
