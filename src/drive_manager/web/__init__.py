"""Web UI and HTTP API for the signed-in user's Drive."""
