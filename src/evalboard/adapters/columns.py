"""Spreadsheet row adapters driven by column alias tables."""

from __future__ import annotations

from typing import Any, Mapping

CANDIDATE_COLUMNS: dict[str, tuple[str, ...]] = {
    "name": ("name", "이름", "성명"),
    "department": ("department", "부서", "소속"),
    "position": ("position", "직급", "직책"),
    "category": ("category", "분류", "카테고리"),
    "main_category": ("main_category", "mainCategory", "구분"),
    "sub_category": ("sub_category", "subCategory", "세부구분"),
    "description": ("description", "설명", "비고"),
    "sort_order": ("sort_order", "order", "순서"),
}

EVALUATOR_COLUMNS: dict[str, tuple[str, ...]] = {
    "name": ("name", "이름", "성명"),
    "email": ("email", "이메일"),
    "department": ("department", "부서", "소속"),
    "role": ("role", "역할"),
    "sort_order": ("sort_order", "order", "순서"),
}

ITEM_COLUMNS: dict[str, tuple[str, ...]] = {
    "category": ("category", "구분", "평가영역"),
    "code": ("code", "item_code", "코드"),
    "name": ("name", "item_name", "세부 항목", "세부항목", "평가항목"),
    "description": ("description", "설명"),
    "max_score": ("max_score", "배점", "만점"),
    "weight": ("weight", "가중치"),
    "sort_order": ("sort_order", "order", "순서"),
}

_ROLE_VALUES = {
    "chair": "chair",
    "위원장": "chair",
    "심사위원장": "chair",
    "member": "member",
    "위원": "member",
    "심사위원": "member",
}


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ColumnMappingAdapter:
    """Map external column names onto canonical field names."""

    kind = ""
    columns: Mapping[str, tuple[str, ...]] = {}
    required: tuple[str, ...] = ("name",)

    def __init__(self, *, extra_aliases: Mapping[str, list[str]] | None = None) -> None:
        merged = {field: list(aliases) for field, aliases in self.columns.items()}
        for field, aliases in (extra_aliases or {}).items():
            merged.setdefault(field, []).extend(aliases)
        self._aliases = {field: tuple(aliases) for field, aliases in merged.items()}

    @property
    def aliases(self) -> dict[str, tuple[str, ...]]:
        return dict(self._aliases)

    def can_handle(self, headers: list[str]) -> bool:
        known = {alias for aliases in self._aliases.values() for alias in aliases}
        return any(header.strip() in known for header in headers if header)

    def map_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Pick the first non-empty aliased value for every canonical field."""
        normalized = {str(key).strip(): value for key, value in row.items() if key is not None}
        mapped: dict[str, Any] = {}
        for field, aliases in self._aliases.items():
            for alias in aliases:
                value = _clean(normalized.get(alias))
                if value is not None:
                    mapped[field] = value
                    break
        return mapped

    def parse_row(self, row: Mapping[str, Any], index: int) -> dict[str, Any]:
        """Return a canonical record dict for a 1-based row position."""
        mapped = self.map_row(row)
        missing = [field for field in self.required if field not in mapped]
        if missing:
            raise ValueError(f"missing required column(s): {', '.join(missing)}")
        mapped.setdefault("sort_order", index)
        mapped.setdefault("is_active", True)
        return self._finalize(mapped)

    def _finalize(self, mapped: dict[str, Any]) -> dict[str, Any]:
        return mapped


class CandidateRowAdapter(ColumnMappingAdapter):
    kind = "candidate"
    columns = CANDIDATE_COLUMNS
    required = ("name", "department", "position")

    def _finalize(self, mapped: dict[str, Any]) -> dict[str, Any]:
        for field in ("name", "department", "position", "category", "main_category", "sub_category", "description"):
            if field in mapped:
                mapped[field] = str(mapped[field])
        return mapped


class EvaluatorRowAdapter(ColumnMappingAdapter):
    kind = "evaluator"
    columns = EVALUATOR_COLUMNS
    required = ("name", "department")

    def _finalize(self, mapped: dict[str, Any]) -> dict[str, Any]:
        role = mapped.get("role")
        if role is not None:
            try:
                mapped["role"] = _ROLE_VALUES[str(role).strip().lower()]
            except KeyError as exc:
                raise ValueError(f"unknown role {role!r}") from exc
        return mapped


class EvaluationItemRowAdapter(ColumnMappingAdapter):
    """Items name their category; ids are resolved against known categories."""

    kind = "item"
    columns = ITEM_COLUMNS
    required = ("category", "name", "max_score")

    def __init__(
        self,
        *,
        extra_aliases: Mapping[str, list[str]] | None = None,
        category_ids: Mapping[str, int] | None = None,
    ) -> None:
        super().__init__(extra_aliases=extra_aliases)
        self._category_ids = dict(category_ids or {})

    def _finalize(self, mapped: dict[str, Any]) -> dict[str, Any]:
        category = mapped.pop("category")
        if isinstance(category, (int, float)) and float(category).is_integer():
            mapped["category_id"] = int(category)
        elif str(category).isdigit():
            mapped["category_id"] = int(str(category))
        else:
            try:
                mapped["category_id"] = self._category_ids[str(category)]
            except KeyError as exc:
                raise ValueError(f"unknown category {category!r}") from exc
        mapped.setdefault("weight", 1.0)
        return mapped
