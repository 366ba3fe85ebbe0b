"""Build commands: run, plan, graph, targets, matrix, config."""
