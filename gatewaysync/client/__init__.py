"""Remote API access: wire models, HTTP/websocket client, connection provider."""
