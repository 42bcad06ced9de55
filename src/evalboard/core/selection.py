"""Category grouping and admin-curated final selection state."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Iterable, Mapping, TypeVar

DEFAULT_MAIN_CATEGORY = "신규"
DEFAULT_SUB_CATEGORY = "일시동행"

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SelectionEntry:
    """Selection flag for one candidate inside a category pair."""

    candidate_id: int
    main_category: str
    sub_category: str
    is_selected: bool
    candidate_name: str = ""
    average_score: float = 0.0


SelectionState = Mapping[str, tuple[SelectionEntry, ...]]


def _label(value: Any, fallback: str) -> str:
    if value is None:
        return fallback
    text = str(value).strip()
    return text or fallback


def category_pair(
    main_category: Any,
    sub_category: Any,
    *,
    default_main_category: str = DEFAULT_MAIN_CATEGORY,
    default_sub_category: str = DEFAULT_SUB_CATEGORY,
) -> tuple[str, str]:
    """Resolve a category pair, substituting defaults for absent labels."""
    return (
        _label(main_category, default_main_category),
        _label(sub_category, default_sub_category),
    )


def category_key(main_category: Any, sub_category: Any) -> str:
    main, sub = category_pair(main_category, sub_category)
    return f"{main}-{sub}"


def default_category_key(record: Any) -> tuple[str, str]:
    return category_pair(
        getattr(record, "main_category", None),
        getattr(record, "sub_category", None),
    )


def group_by_category_pair(
    records: Iterable[T],
    key_fn: Callable[[T], tuple[str, str]] | None = None,
) -> dict[str, list[T]]:
    """Group records under ``"{main}-{sub}"`` keys in first-seen order."""
    key_fn = key_fn or default_category_key
    groups: dict[str, list[T]] = {}
    for record in records:
        main, sub = key_fn(record)
        groups.setdefault(f"{main}-{sub}", []).append(record)
    return groups


def apply_final_selection(
    state: SelectionState,
    candidate_id: int,
    main_category: str | None,
    sub_category: str | None,
    is_selected: bool,
    *,
    candidate_name: str | None = None,
    average_score: float | None = None,
    default_main_category: str = DEFAULT_MAIN_CATEGORY,
    default_sub_category: str = DEFAULT_SUB_CATEGORY,
) -> dict[str, tuple[SelectionEntry, ...]]:
    """Return a new state with the candidate's flag upserted in its category group.

    An existing entry keeps its name and score unless new ones are given.
    """
    main, sub = category_pair(
        main_category,
        sub_category,
        default_main_category=default_main_category,
        default_sub_category=default_sub_category,
    )
    key = f"{main}-{sub}"
    entries = list(state.get(key, ()))

    for index, entry in enumerate(entries):
        if entry.candidate_id != candidate_id:
            continue
        changes: dict[str, Any] = {"is_selected": is_selected}
        if candidate_name is not None:
            changes["candidate_name"] = candidate_name
        if average_score is not None:
            changes["average_score"] = average_score
        entries[index] = replace(entry, **changes)
        break
    else:
        entries.append(
            SelectionEntry(
                candidate_id=candidate_id,
                main_category=main,
                sub_category=sub,
                is_selected=is_selected,
                candidate_name=candidate_name or "",
                average_score=average_score or 0.0,
            )
        )

    new_state = dict(state)
    new_state[key] = tuple(entries)
    return new_state


def get_final_selected_candidates(state: SelectionState) -> list[SelectionEntry]:
    return [
        entry
        for entries in state.values()
        for entry in entries
        if entry.is_selected
    ]


def suggest_final_selections(
    results: Iterable[Any],
    *,
    default_main_category: str = DEFAULT_MAIN_CATEGORY,
    default_sub_category: str = DEFAULT_SUB_CATEGORY,
) -> dict[str, tuple[SelectionEntry, ...]]:
    """Seed a selection state from computed results using their threshold flag."""
    groups: dict[str, list[SelectionEntry]] = {}
    for result in results:
        main, sub = category_pair(
            result.main_category,
            result.sub_category,
            default_main_category=default_main_category,
            default_sub_category=default_sub_category,
        )
        groups.setdefault(f"{main}-{sub}", []).append(
            SelectionEntry(
                candidate_id=result.candidate_id,
                main_category=main,
                sub_category=sub,
                is_selected=bool(result.selected),
                candidate_name=result.name,
                average_score=result.average_score,
            )
        )
    return {key: tuple(entries) for key, entries in groups.items()}


def state_to_dict(state: SelectionState) -> dict[str, list[dict[str, Any]]]:
    return {key: [asdict(entry) for entry in entries] for key, entries in state.items()}


def state_from_dict(raw: Mapping[str, Iterable[Mapping[str, Any]]]) -> dict[str, tuple[SelectionEntry, ...]]:
    return {
        key: tuple(SelectionEntry(**dict(entry)) for entry in entries)
        for key, entries in raw.items()
    }
