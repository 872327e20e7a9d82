from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

from learning_analytics.analytics.context import AnalyticsContext
from learning_analytics.core.events.event_bus import EventBus
from learning_analytics.core.events.sinks.file_recorder import FileRecorderSink
from learning_analytics.core.events.sinks.sink_logging import LoggingEventSink
from learning_analytics.io.jsonl_repository import JsonlAnalyticsRepository
from learning_analytics.io.local_files import LocalFileStore
from learning_analytics.io.memory import InMemoryEntityStore, InMemoryLogStore
from learning_analytics.io.object_storage import ObjectStorageFileStore, OCIObjectStorageS3Shim
from learning_analytics.model.model import Model
from learning_analytics.runtime.mlflow_evaluation_logger import MlflowEvaluationLogger
from learning_analytics.runtime.prometheus_metrics import PrometheusMetricsClient
from learning_analytics.runtime.runtime_config import RuntimeConfig

if TYPE_CHECKING:
    from learning_analytics.core.ports.file_store import FileStore

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))


def _build_file_store(config: RuntimeConfig) -> FileStore:
    storage_cfg = config.object_storage
    if storage_cfg is None:
        return LocalFileStore(config.files_dir)

    shim = OCIObjectStorageS3Shim(
        region=storage_cfg.region,
        auth_mode=storage_cfg.auth_mode,
        oci_config_file=storage_cfg.oci_config_file,
        oci_profile=storage_cfg.oci_profile,
    )
    return ObjectStorageFileStore(shim, bucket=storage_cfg.bucket, root_prefix=storage_cfg.root_prefix)


def build_context(config: RuntimeConfig) -> AnalyticsContext:
    """Wire the stores described by the runtime configuration."""
    dump = _load_json(config.data_dump)

    event_bus = EventBus([LoggingEventSink()])
    if config.events_file is not None:
        event_bus.register(FileRecorderSink(config.events_file))

    return AnalyticsContext.create(
        entity_store=InMemoryEntityStore.from_json_obj(dump),
        log_store=InMemoryLogStore.from_json_obj(dump),
        repository=JsonlAnalyticsRepository(config.repository_dir),
        file_store=_build_file_store(config),
        lease_root=config.lease_dir,
        settings=config.settings,
        event_bus=event_bus,
    )


def _select_models(context: AnalyticsContext, model_id: int | None, *, enabled_only: bool) -> list[Model]:
    if model_id is not None:
        return [Model.load(model_id, context=context)]
    return [
        Model(definition, context=context)
        for definition in context.repository.list_models()
        if definition.enabled or not enabled_only
    ]


def _guess_dates(context: AnalyticsContext) -> list[dict[str, Any]]:
    rows = []
    for course_id in context.entity_store.list_course_ids():
        analysable = context.analysables.get(course_id)
        rows.append(
            {
                "course_id": course_id,
                "start": analysable.get_start(),
                "end": analysable.get_end(),
                "guessed_start": analysable.guess_start(),
                "guessed_end": analysable.guess_end(),
            }
        )
    return rows


def _push_metrics(action: str, summary: list[dict[str, Any]]) -> None:
    metrics = PrometheusMetricsClient()
    if not metrics.is_enabled():
        return

    try:
        for row in summary:
            labels = {"action": action, "model_id": str(row["model_id"])}
            metrics.set_gauge(name="batch_status", value=float(row["status"]), labels=labels)
            if "new_predictions" in row:
                metrics.set_gauge(name="batch_new_predictions", value=float(row["new_predictions"]), labels=labels)
        metrics.push_all(job=f"learning_analytics_{action}")
    except Exception:
        LOGGER.exception("Prometheus push failed")


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

def _run_create(context: AnalyticsContext, args: argparse.Namespace) -> list[dict[str, Any]]:
    if not args.target or not args.indicators:
        raise SystemExit("Error: --create requires --target and --indicators.")
    indicators = [indicator.strip() for indicator in args.indicators.split(",") if indicator.strip()]
    model = Model.create(args.target, indicators, context=context)
    return [{"model_id": model.id, "state": model.state}]


def _run_enable(context: AnalyticsContext, args: argparse.Namespace) -> list[dict[str, Any]]:
    if args.model_id is None:
        raise SystemExit("Error: --enable requires --model-id.")
    model = Model.load(args.model_id, context=context)
    model.enable(args.time_splitting)
    return [{"model_id": model.id, "state": model.state, "time_splitting": model.get_time_splitting_id()}]


def _run_train(context: AnalyticsContext, args: argparse.Namespace) -> list[dict[str, Any]]:
    summary = []
    for model in _select_models(context, args.model_id, enabled_only=True):
        result = model.train()
        summary.append({"model_id": model.id, "status": int(result.status), "info": result.info})
    return summary


def _run_predict(context: AnalyticsContext, args: argparse.Namespace) -> list[dict[str, Any]]:
    summary = []
    for model in _select_models(context, args.model_id, enabled_only=True):
        if args.model_id is None and not model.is_trained():
            LOGGER.info("Skipping untrained model", extra={"model_id": model.id})
            continue
        result = model.predict()
        summary.append(
            {
                "model_id": model.id,
                "status": int(result.status),
                "predictions": len(result.predictions),
                "new_predictions": result.n_new,
                "info": result.info,
            }
        )
    return summary


def _run_evaluate(context: AnalyticsContext, args: argparse.Namespace) -> list[dict[str, Any]]:
    time_splittings = [args.time_splitting] if args.time_splitting else None

    summary = []
    for model in _select_models(context, args.model_id, enabled_only=False):
        results = model.evaluate(time_splitting_ids=time_splittings)

        # --- MLflow logging (side-effect only) ---
        try:
            MlflowEvaluationLogger().log(definition=model.definition, results=results)
        except Exception:
            LOGGER.exception("MLflow logging failed")

        for result in results:
            summary.append(
                {
                    "model_id": model.id,
                    "time_splitting": result.time_splitting,
                    "status": int(result.status),
                    "score": result.score,
                    "info": result.info,
                }
            )
    return summary


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Learning analytics batch entrypoint (create, enable, train, predict, evaluate)"
    )

    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the runtime JSON config.",
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--create", action="store_true", help="Create a model.")
    actions.add_argument("--enable", action="store_true", help="Enable a model.")
    actions.add_argument("--train", action="store_true", help="Train enabled models.")
    actions.add_argument("--predict", action="store_true", help="Predict with enabled models.")
    actions.add_argument("--evaluate", action="store_true", help="Evaluate models.")
    actions.add_argument(
        "--guess-dates",
        action="store_true",
        help="Print configured and guessed course start/end dates.",
    )

    parser.add_argument("--model-id", type=int, default=None, help="Restrict to one model.")
    parser.add_argument(
        "--time-splitting",
        type=str,
        default=None,
        help="Time splitting id (--enable) or the only one to evaluate (--evaluate).",
    )
    parser.add_argument("--target", type=str, default=None, help="Target id (--create).")
    parser.add_argument("--indicators", type=str, default=None, help="Comma separated indicator ids (--create).")

    args = parser.parse_args(argv)

    runners = {
        "create": _run_create,
        "enable": _run_enable,
        "train": _run_train,
        "predict": _run_predict,
        "evaluate": _run_evaluate,
    }
    action = next((name for name in (*runners, "guess_dates") if getattr(args, name)), None)
    if action is None:
        print(
            "Error: one of --create, --enable, --train, --predict, --evaluate or --guess-dates must be specified.",
            file=sys.stderr,
        )
        sys.exit(2)

    config = RuntimeConfig.from_json_obj(_load_json(args.config))
    context = build_context(config)

    try:
        if action == "guess_dates":
            summary = _guess_dates(context)
        else:
            summary = runners[action](context, args)
            if action in ("train", "predict"):
                _push_metrics(action, summary)
    finally:
        context.event_bus.close()

    print(json.dumps(summary, indent=2, default=str))


if __name__ == "__main__":
    main()
