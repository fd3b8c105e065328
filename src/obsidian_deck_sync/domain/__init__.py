"""Domain layer: entities, interfaces and services shared by all adapters."""
