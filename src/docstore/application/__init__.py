"""
Document Store Application Layer
=================================

Orchestrates the bootstrap pipeline:
- interfaces: IConfigSource, IDocumentStore
- resolver: ordered default-filling stages for StoreOptions
- factory: validation, construction and initialization of the store
- registry / provider: lazily built singletons and the registration entry point

Import from the submodules; this package does not re-export them.
"""
