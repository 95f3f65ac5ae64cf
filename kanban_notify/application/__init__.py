"""Application layer orchestrating domain and infrastructure."""
