"""HTTP and WebSocket surface of the Dicekeep server."""
