"""Built-in type plugins.

Each module exposes ``load(connection, api)`` and is enabled by listing
its name in ``RegistryConfig.types``.
"""
