"""Domain layer: mesh and routing models plus pure scoring services."""
