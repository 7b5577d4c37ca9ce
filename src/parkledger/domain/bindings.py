"""Module category binding domain service."""

from pathlib import Path
from typing import Any, Optional

import yaml

from parkledger.database.base import Database
from parkledger.domain.entities import EXPENSE, INCOME, ModuleCategoryBinding
from parkledger.domain.errors import NotFoundError, ValidationError, unknown_source_module
from parkledger.logging_config import get_logger

logger = get_logger("bindings")

SOURCE_MODULES = (
    "hr",
    "concessions",
    "events",
    "marketing",
    "assets",
    "trees",
    "volunteers",
    "incidents",
)

# (module, transaction type, category codes); the first code is the default
DEFAULT_BINDINGS = [
    ("hr", EXPENSE, ["PERS-SAL", "PERS-BON", "PERS-OVT", "PERS-CAP"]),
    ("concessions", INCOME, ["CONC-REN", "CONC-COM", "CONC-DEP"]),
    ("events", INCOME, ["EVEN-REG", "EVEN-PAT"]),
    ("events", EXPENSE, ["EVEN-LOG"]),
    ("marketing", INCOME, ["MARK-PAT", "MARK-PUB"]),
    ("assets", EXPENSE, ["ACTI-MAN", "ACTI-ADQ"]),
    ("trees", EXPENSE, ["ARBO-MAN", "ARBO-PLA"]),
    ("volunteers", EXPENSE, ["VOLU-REC", "VOLU-CAP"]),
    ("incidents", EXPENSE, ["INCI-REP"]),
]


class ModuleBindingService:
    """Service for per-module category bindings."""

    def __init__(self, db: Database):
        """Initialize binding service.

        Args:
            db: Database instance
        """
        self.db = db

    @staticmethod
    def _check_module(module: str) -> None:
        if module not in SOURCE_MODULES:
            raise ValidationError(unknown_source_module(module))

    def resolve(self, module: str, is_income: bool) -> list[str]:
        """Get the category codes bound to a module, default first.

        Args:
            module: Source module name
            is_income: True for income bindings, False for expense bindings

        Returns:
            Category codes ordered by sort order
        """
        return [
            b.category_code
            for b in self.db.list_bindings(source_module=module, is_income=is_income)
        ]

    def default_category(self, module: str, is_income: bool) -> Optional[str]:
        """Get the category used when an event omits its category code."""
        codes = self.resolve(module, is_income)
        return codes[0] if codes else None

    def is_auto_generate(self, module: str, category_code: str, is_income: bool) -> bool:
        """Check whether events for this binding post automatically.

        Unbound categories post automatically; only an explicit binding
        with auto_generate off suppresses posting.
        """
        binding = self.db.get_binding(module, category_code, is_income)
        return binding is None or binding.auto_generate

    def list_bindings(self, module: Optional[str] = None) -> list[ModuleCategoryBinding]:
        """List bindings, optionally for one module."""
        return self.db.list_bindings(source_module=module)

    def set_binding(
        self,
        module: str,
        category_code: str,
        is_income: bool,
        auto_generate: bool = True,
        sort_order: Optional[int] = None,
    ) -> int:
        """Create or update a binding.

        Args:
            module: Source module name
            category_code: Finance category code
            is_income: Direction of the binding
            auto_generate: Whether matching events post automatically
            sort_order: Position among the module's bindings; 0 is the default.
                Appended after existing bindings when omitted.

        Returns:
            Binding ID
        """
        self._check_module(module)
        category_code = (category_code or "").strip()
        if not category_code:
            raise ValidationError("Category code is required")
        return self.db.upsert_binding(
            source_module=module,
            category_code=category_code,
            is_income=is_income,
            auto_generate=auto_generate,
            sort_order=sort_order,
        )

    def remove_binding(self, module: str, category_code: str, is_income: bool) -> None:
        """Remove a binding."""
        if not self.db.delete_binding(module, category_code, is_income):
            direction = INCOME if is_income else EXPENSE
            raise NotFoundError(f"No {direction} binding for {module} -> {category_code}")

    def seed_defaults(self, force: bool = False) -> int:
        """Seed the default bindings for the eight source modules.

        Args:
            force: Seed even if bindings already exist (existing rows are updated)

        Returns:
            Number of bindings written, 0 if seeding was skipped
        """
        if self.db.list_bindings() and not force:
            logger.info("Bindings already present, skipping default seed")
            return 0

        written = 0
        with self.db.transaction():
            for module, transaction_type, codes in DEFAULT_BINDINGS:
                for position, code in enumerate(codes):
                    self.set_binding(
                        module, code, transaction_type == INCOME, auto_generate=True, sort_order=position
                    )
                    written += 1
        logger.info("Seeded %d default module bindings", written)
        return written

    def load_bindings(self, path: str | Path) -> int:
        """Load bindings from a YAML file.

        The file holds a ``bindings`` list of mappings with ``module``,
        ``category_code`` and ``type`` (income or expense), plus optional
        ``auto_generate`` (default true) and ``sort_order``. The whole file is
        applied in one transaction.

        Returns:
            Number of bindings written
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("bindings") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ValidationError(f"{path}: expected a 'bindings' list")

        parsed = [self._parse_entry(entry, path) for entry in entries]
        with self.db.transaction():
            for entry in parsed:
                self.set_binding(**entry)
        logger.info("Loaded %d module bindings from %s", len(parsed), path)
        return len(parsed)

    @staticmethod
    def _parse_entry(entry: Any, path: str | Path) -> dict[str, Any]:
        if not isinstance(entry, dict) or not {"module", "category_code", "type"} <= entry.keys():
            raise ValidationError(
                f"{path}: each binding needs module, category_code and type: {entry!r}"
            )
        if entry["type"] not in (INCOME, EXPENSE):
            raise ValidationError(f"{path}: binding type must be income or expense: {entry!r}")
        sort_order = entry.get("sort_order")
        return {
            "module": str(entry["module"]),
            "category_code": str(entry["category_code"]),
            "is_income": entry["type"] == INCOME,
            "auto_generate": bool(entry.get("auto_generate", True)),
            "sort_order": int(sort_order) if sort_order is not None else None,
        }
