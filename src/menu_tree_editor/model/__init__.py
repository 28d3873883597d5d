"""Menu tree model: nodes, queries, mutations, diffing and sync payloads."""
