"""Infrastructure layer: configuration, logging, database and external clients."""
