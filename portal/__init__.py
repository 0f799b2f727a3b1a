"""Student Portal server."""
