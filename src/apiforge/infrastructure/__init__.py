"""Infrastructure layer — httpx transports and definition loading."""
