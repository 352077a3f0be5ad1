"""Package-managing adapters (apt, npm)."""
