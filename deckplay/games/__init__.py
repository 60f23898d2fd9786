"""
Games module - Bundled card sets.

Each game has its own subpackage with:
- Card definitions
- A factory that builds the CardCatalog
- The default build rules for that card set
"""
