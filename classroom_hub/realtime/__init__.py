"""Realtime infrastructure (Socket.IO, etc).

This package holds the socket server, handshake authentication and the
outbound event shapes shared by every classroom room.
"""
