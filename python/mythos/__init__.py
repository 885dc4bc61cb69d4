"""Mythos reply service: AI reply generation over a gateway or edge inference backend."""
