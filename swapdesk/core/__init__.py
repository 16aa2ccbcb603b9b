"""Core domain: chains, exact currency arithmetic, token catalog and trade metrics."""
