"""Runtime helpers: clock, env, logging, serialization."""
