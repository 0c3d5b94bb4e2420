"""HTTP routers for Channel Service, one module per feature area."""
