"""IRC subsystem package.

Contains the line parser, the pure session transition function, keepalive
and reconnect timing, the line transports and the session driver that ties
them together.
"""
