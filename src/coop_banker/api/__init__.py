"""HTTP and WebSocket API for the banker."""
