"""Server frontend: ASGI handling, error boundary, negotiation, process entry."""
