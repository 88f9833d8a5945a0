from . import operation, rights

ENTRY_PARSERS = [
    operation,
    rights,
]
