"""
opiumlink - script delivery client for local Opiumware instances

Connects to the Opiumware service ports on the loopback interface,
sends zlib-compressed scripts, and reports which instances accepted
them. Also provides reachability probes for status displays.
"""

__version__ = "0.1.0"
