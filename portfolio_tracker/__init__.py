"""Model portfolio allocation, deviation and rebalancing engine."""
