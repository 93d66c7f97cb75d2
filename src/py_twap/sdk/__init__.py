"""Public SDK layer for py_twap.

Exports:
- errors: public exceptions and map_exception()
- uow: async UoW factory builder
- bootstrap: init_app/AppContext for one-import startup
"""

__all__ = [
    "errors",
    "uow",
    "bootstrap",
]
