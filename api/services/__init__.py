"""Matching core services: canonicalization, embedding, sync and match queries."""
