"""Note Vault: personal notes with an async embedding pipeline and semantic search."""
