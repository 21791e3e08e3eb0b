"""Core domain package for crossroute.

Core contains alias resolution, route matching, the cross-context policy and
the forwarding engine without any Telegram or file-specific code, keeping
the routing logic portable.
"""
