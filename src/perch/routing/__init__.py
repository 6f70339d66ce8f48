"""Routing — path templates compiled into typed, immutable matchers.

Each registered template compiles to its own matcher; matching cost is
one regex match plus one coercion per placeholder.
"""
