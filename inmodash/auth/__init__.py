"""Bearer-token scoping of requests to an agency account."""
