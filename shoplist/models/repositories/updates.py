"""
Partial update builder.

Turns a set of (field, value) changes coming from an API payload into a
parameterized UPDATE statement. Only fields listed in the column map can be
written, and fields whose value is None are treated as "not provided".
"""

from typing import Any, Mapping

from sqlalchemy import Update, update

from shoplist.services.exceptions import ValidationError


def build_update(
    model,
    changes: Mapping[str, Any],
    columns: Mapping[str, str],
    *criteria,
) -> Update:
    """
    Build an UPDATE for the provided fields.

    Args:
        model: ORM entity class to update
        changes: API field name -> new value (None means "leave alone")
        columns: API field name -> entity attribute name, the writable whitelist
        criteria: WHERE clauses limiting the rows to update

    Raises:
        ValidationError: no writable field was provided, or an unknown field was
    """
    unknown = set(changes) - set(columns)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    values = {
        columns[field]: value
        for field, value in changes.items()
        if value is not None
    }
    if not values:
        raise ValidationError("No fields to update")

    return update(model).where(*criteria).values(**values)
