"""Dependency injection container for the evaluation toolkit."""

from __future__ import annotations

from dependency_injector import containers, providers

from .adapters import CandidateRowAdapter, EvaluationItemRowAdapter, EvaluatorRowAdapter
from .core import AggregationEngine
from .pipeline import AdapterRegistry, RecordLoader, ResultsPipeline, SheetReader


class EvaluationContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    candidate_adapter = providers.Singleton(CandidateRowAdapter)
    evaluator_adapter = providers.Singleton(EvaluatorRowAdapter)
    item_adapter = providers.Singleton(EvaluationItemRowAdapter)

    adapter_registry = providers.Singleton(
        AdapterRegistry,
        adapters=providers.List(candidate_adapter, evaluator_adapter, item_adapter),
    )

    sheet_reader = providers.Singleton(SheetReader)

    record_loader = providers.Factory(
        RecordLoader,
        registry=adapter_registry,
        reader=sheet_reader,
    )

    aggregation_engine = providers.Singleton(
        AggregationEngine,
        threshold=config.selection_threshold,
        default_main_category=config.default_main_category,
        default_sub_category=config.default_sub_category,
    )

    pipeline = providers.Factory(
        ResultsPipeline,
        engine=aggregation_engine,
    )


def create_container(
    *,
    settings: dict | None = None,
    category_ids: dict[str, int] | None = None,
) -> EvaluationContainer:
    """Instantiate container with optional overrides."""

    container = EvaluationContainer()

    if category_ids:
        container.item_adapter.override(
            providers.Singleton(EvaluationItemRowAdapter, category_ids=category_ids)
        )

    if not settings:
        return container

    core_settings = settings.get("core", {}) if isinstance(settings, dict) else {}
    if core_settings:
        container.config.override(core_settings)

    ingestion_settings = settings.get("ingestion", {}) if isinstance(settings, dict) else {}

    if "candidate" in ingestion_settings:
        container.candidate_adapter.override(
            providers.Singleton(
                CandidateRowAdapter, extra_aliases=ingestion_settings["candidate"]
            )
        )

    if "evaluator" in ingestion_settings:
        container.evaluator_adapter.override(
            providers.Singleton(
                EvaluatorRowAdapter, extra_aliases=ingestion_settings["evaluator"]
            )
        )

    if "item" in ingestion_settings:
        container.item_adapter.override(
            providers.Singleton(
                EvaluationItemRowAdapter,
                extra_aliases=ingestion_settings["item"],
                category_ids=category_ids,
            )
        )

    return container
