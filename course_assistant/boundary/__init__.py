"""
Boundary layer: adapters to databases, the retrieval store, the message
substrate, the crawler, the byte fetcher and the identity provider.
"""
