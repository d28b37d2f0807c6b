"""Command-line interface: ``kbmcp serve``, ``auth``, ``role``, ``prompt`` and ``check``."""
