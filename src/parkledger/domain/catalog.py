"""Accounting catalog domain service."""

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from parkledger.database.base import Database
from parkledger.domain.entities import (
    AccountingCategory,
    CATEGORY_TYPES,
    EXPENSE,
    INCOME,
    NATURES,
)
from parkledger.domain.errors import NotFoundError, ValidationError, accounting_category_not_found

CODE_PATTERN = re.compile(r"^\d+(\.\d+)*$")

# Leading digit of a code -> finance category kind
LEADING_DIGIT_KINDS = {"4": INCOME, "5": EXPENSE}

TYPE_KINDS = {"Income": INCOME, "Expense": EXPENSE}

DEFAULT_NATURES = {
    "Asset": "debit",
    "Expense": "debit",
    "Income": "credit",
    "Liability": "credit",
    "Equity": "credit",
}


def parent_code_of(code: str) -> Optional[str]:
    """Return the parent of a hierarchical code, or None for a root code."""
    if "." not in code:
        return None
    return code.rsplit(".", 1)[0]


def level_of(code: str) -> int:
    """Return the depth of a hierarchical code (root codes are level 1)."""
    return code.count(".") + 1


def classify(category: AccountingCategory) -> Optional[str]:
    """Return "income", "expense" or None for an accounting category.

    An explicit Income/Expense type wins over the leading digit of the code.
    Other types fall back to the leading digit only when it is 4 or 5.
    """
    by_type = TYPE_KINDS.get(category.category_type)
    if by_type is not None:
        return by_type
    if category.category_type in CATEGORY_TYPES:
        return None
    return LEADING_DIGIT_KINDS.get(category.code[:1])


def leading_digit_kind(code: str) -> Optional[str]:
    """Return the kind implied by a code's leading digit."""
    return LEADING_DIGIT_KINDS.get(code[:1])


class AccountingCatalogService:
    """Service for the canonical chart of accounts."""

    def __init__(self, db: Database):
        """Initialize catalog service.

        Args:
            db: Database instance
        """
        self.db = db

    def list_active(self, category_type: Optional[str] = None) -> list[AccountingCategory]:
        """List active accounting categories.

        Args:
            category_type: Optional type filter (Income, Expense, ...)

        Returns:
            Active categories ordered by code
        """
        if category_type is not None and category_type not in CATEGORY_TYPES:
            raise ValidationError(f"Unknown category type '{category_type}'")
        return self.db.list_accounting_categories(active_only=True, category_type=category_type)

    def list_all(self) -> list[AccountingCategory]:
        """List active and inactive accounting categories."""
        return self.db.list_accounting_categories(active_only=False)

    def get_category(self, code: str) -> Optional[AccountingCategory]:
        """Get accounting category by code."""
        return self.db.get_accounting_category_by_code(code)

    def add_category(
        self,
        code: str,
        name: str,
        category_type: str,
        nature: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Add an accounting category.

        Args:
            code: Hierarchical code such as "5.1.2"
            name: Display name
            category_type: One of Income, Expense, Asset, Liability, Equity
            nature: debit or credit; derived from the type when omitted
            description: Optional description

        Returns:
            Accounting category ID

        Raises:
            ValidationError: If the code, type or nature is invalid or the parent is missing
            ConflictError: If the code already exists
        """
        code = (code or "").strip()
        if not CODE_PATTERN.match(code):
            raise ValidationError(f"Invalid accounting code '{code}'")
        if not name or not name.strip():
            raise ValidationError("Accounting category name is required")
        if category_type not in CATEGORY_TYPES:
            raise ValidationError(f"Unknown category type '{category_type}'")
        if nature is None:
            nature = DEFAULT_NATURES[category_type]
        if nature not in NATURES:
            raise ValidationError(f"Unknown account nature '{nature}'")

        parent_code = parent_code_of(code)
        if parent_code is not None and self.db.get_accounting_category_by_code(parent_code) is None:
            raise ValidationError(f"Parent accounting category '{parent_code}' not found")

        return self.db.create_accounting_category(
            code=code,
            name=name.strip(),
            category_type=category_type,
            nature=nature,
            level=level_of(code),
            parent_code=parent_code,
            description=description,
        )

    def deactivate_category(self, code: str) -> None:
        """Deactivate an accounting category.

        Finance categories derived from it become inactive at the next sync.
        """
        if self.db.get_accounting_category_by_code(code) is None:
            raise NotFoundError(accounting_category_not_found(code))
        self.db.set_accounting_category_active(code, False)

    def reactivate_category(self, code: str) -> None:
        """Reactivate an accounting category."""
        if self.db.get_accounting_category_by_code(code) is None:
            raise NotFoundError(accounting_category_not_found(code))
        self.db.set_accounting_category_active(code, True)

    def load_catalog(self, path: str | Path) -> int:
        """Load accounting categories from a YAML file.

        The file holds a ``categories`` list of mappings with ``code``,
        ``name`` and ``type`` plus optional ``nature`` and ``description``.
        Codes that already exist are skipped. Entries are created parents
        first, so their order in the file does not matter.

        Returns:
            Number of categories created
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("categories") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ValidationError(f"{path}: expected a 'categories' list")

        rows = [self._parse_entry(entry, path) for entry in entries]
        created = 0
        with self.db.transaction():
            for row in sorted(rows, key=lambda r: (level_of(r["code"]), r["code"])):
                if self.db.get_accounting_category_by_code(row["code"]) is not None:
                    continue
                self.add_category(**row)
                created += 1
        return created

    @staticmethod
    def _parse_entry(entry: Any, path: str | Path) -> dict[str, Any]:
        if not isinstance(entry, dict) or not {"code", "name", "type"} <= entry.keys():
            raise ValidationError(f"{path}: each category needs code, name and type: {entry!r}")
        return {
            "code": str(entry["code"]),
            "name": str(entry["name"]),
            "category_type": str(entry["type"]),
            "nature": entry.get("nature"),
            "description": entry.get("description"),
        }

    def get_tree(self) -> list[dict]:
        """Get the catalog as nested dicts.

        Returns:
            Root categories with nested ``children`` lists
        """
        categories = self.list_all()
        by_parent: dict[Optional[str], list[AccountingCategory]] = {}
        for cat in categories:
            by_parent.setdefault(cat.parent_code, []).append(cat)

        def build(parent_code: Optional[str]) -> list[dict]:
            return [
                {
                    "code": cat.code,
                    "name": cat.name,
                    "category_type": cat.category_type,
                    "is_active": cat.is_active,
                    "children": build(cat.code),
                }
                for cat in by_parent.get(parent_code, [])
            ]

        return build(None)
