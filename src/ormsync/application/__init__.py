"""Application layer: schema build orchestration."""
