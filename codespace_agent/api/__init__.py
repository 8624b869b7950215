"""HTTP and WebSocket surface of the agent."""
