"""Document preview generation: API service, renderer and client coordinator."""
