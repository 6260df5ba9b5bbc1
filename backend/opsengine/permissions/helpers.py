# Overview: Utility functions for capability lookups and validation.

from .definitions import PERMISSION_DEFINITIONS


def get_all_permission_codes():
    """Get list of all capability codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permission_definition(code):
    """Get full definition for a capability code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a capability code is in the catalog."""
    return code in get_all_permission_codes()


def catalog():
    """Catalog as a list of dicts, in definition order."""
    return [get_permission_definition(perm[0]) for perm in PERMISSION_DEFINITIONS]


def full_permission_map():
    """Every capability set to True."""
    return {code: True for code in get_all_permission_codes()}
