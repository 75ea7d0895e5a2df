"""HTTP routers grouped by screen."""
