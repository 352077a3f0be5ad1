"""Language runtime adapters."""
