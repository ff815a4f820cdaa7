"""HTTP API layer: dependencies, middleware and routers."""
