"""Domain layer: swap targeting, proposal resolution and settlement."""
