"""
Command line for the labeling engine.

    labeling-engine estimate --items items.json --profiles profiles.yaml
    labeling-engine process --items items.json --output out.json --yes
    labeling-engine allocate --items items.json --project-id P --portion 20
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from .api.manager import ProviderManager
from .config.log_setup import configure_logging
from .config.profiles import load_catalog
from .config.settings import settings
from .consensus.allocator import allocate
from .errors import ConfigurationError, ProviderError
from .estimation.estimator import estimate_cost
from .estimation.pricing import OpenRouterPricingClient, PricingSession
from .models import CostEstimate, IAAConfig, ProcessingProgress, ProcessingScope, WorkItem
from .processing.batch_window import BatchWindowProcessor
from .processing.store import WorkItemStore

logger = structlog.get_logger()


def load_items(path: Path) -> list[WorkItem]:
    """Load work items from a JSON list (or an object with an ``items`` list)."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items", [])
    return [WorkItem.model_validate(raw) for raw in data]


def save_items(path: Path, items: list[WorkItem]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump([item.model_dump(mode="json") for item in items], f, ensure_ascii=False, indent=2)


def print_estimate(estimate: CostEstimate) -> None:
    print(f"\n{'=' * 60}")
    print("ESTIMATE")
    print(f"{'=' * 60}")
    print(f"Items: {estimate.tokens.items}")
    print(f"Models: {estimate.tokens.models}")
    for entry in estimate.breakdown:
        cost = f"${entry.cost:.4f}" if entry.cost is not None else "cost unknown"
        print(f"  {entry.profile_id} ({entry.model_id}): {entry.tokens} tokens, {cost} [{entry.price_source.value}]")
    print(f"Total: {estimate.summary}")
    if estimate.unresolved_profile_ids:
        print(f"Pricing unavailable: {', '.join(estimate.unresolved_profile_ids)}")


def _scope(args: argparse.Namespace) -> ProcessingScope:
    if len(args.item) == 1:
        return ProcessingScope.single(args.item[0])
    if args.item:
        return ProcessingScope.subset(args.item)
    return ProcessingScope.all()


async def _estimate(args: argparse.Namespace, manager: ProviderManager, items: list[WorkItem]) -> CostEstimate:
    resolved = manager.validate_selection(args.model)
    session = PricingSession(OpenRouterPricingClient())
    return await estimate_cost(items, resolved, _scope(args), args.force, session)


def _selected_models(args: argparse.Namespace, manager: ProviderManager) -> list[str]:
    return args.model or [profile.id for profile in manager.catalog.active_profiles()]


def cmd_estimate(args: argparse.Namespace) -> int:
    manager = ProviderManager(load_catalog(args.profiles))
    args.model = _selected_models(args, manager)
    estimate = asyncio.run(_estimate(args, manager, load_items(args.items)))
    print_estimate(estimate)
    return 0


def cmd_process(args: argparse.Namespace) -> int:
    manager = ProviderManager(load_catalog(args.profiles))
    args.model = _selected_models(args, manager)
    items = load_items(args.items)

    estimate = asyncio.run(_estimate(args, manager, items))
    print_estimate(estimate)

    if estimate.tokens.items == 0:
        print("\nNothing to process.")
        return 0

    if not args.yes:
        answer = input("\nProceed? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Aborted.")
            return 1

    def on_progress(progress: ProcessingProgress) -> None:
        print(f"  Processed ~{progress.current}/{progress.total}")

    async def run() -> tuple[list[WorkItem], ProviderError | None]:
        store = WorkItemStore(items)
        processor = BatchWindowProcessor(store, manager)
        failure = None
        try:
            await processor.run(args.model, _scope(args), args.force, on_progress)
        except ProviderError as e:
            failure = e
        finally:
            await manager.aclose()
        return store.items(), failure

    updated, failure = asyncio.run(run())
    output = args.output or args.items
    save_items(output, updated)
    print(f"\nSaved: {output}")

    if failure is not None:
        print(f"Processing finished with errors (partial success): {failure}", file=sys.stderr)
        return 2
    return 0


def cmd_allocate(args: argparse.Namespace) -> int:
    items = load_items(args.items)
    config = IAAConfig(
        enabled=True,
        portion_percent=args.portion if args.portion is not None else settings.iaa_portion_percent,
        annotators_per_iaa_item=args.annotators or settings.iaa_annotators_per_item,
        seed=args.seed if args.seed is not None else settings.iaa_seed,
    )
    allocated = allocate(items, config, args.project_id)
    output = args.output or args.items
    save_items(output, allocated)
    print(f"IAA items: {sum(1 for item in allocated if item.is_iaa)}/{len(allocated)}")
    print(f"Saved: {output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="labeling-engine", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, handler in (("estimate", cmd_estimate), ("process", cmd_process)):
        cmd = sub.add_parser(name)
        cmd.add_argument("--items", "-i", type=Path, required=True)
        cmd.add_argument("--profiles", "-p", type=Path, default=settings.profiles_path)
        cmd.add_argument("--model", "-m", action="append", default=[], help="Profile id (repeatable)")
        cmd.add_argument("--item", action="append", default=[], help="Limit to item id (repeatable)")
        cmd.add_argument("--force", action="store_true", help="Reprocess existing suggestions")
        if name == "process":
            cmd.add_argument("--output", "-o", type=Path, default=None)
            cmd.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
        cmd.set_defaults(handler=handler)

    cmd = sub.add_parser("allocate")
    cmd.add_argument("--items", "-i", type=Path, required=True)
    cmd.add_argument("--project-id", required=True)
    cmd.add_argument("--portion", type=float, default=None)
    cmd.add_argument("--annotators", type=int, default=None)
    cmd.add_argument("--seed", type=int, default=None)
    cmd.add_argument("--output", "-o", type=Path, default=None)
    cmd.set_defaults(handler=cmd_allocate)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.log_level, settings.log_json)

    try:
        return args.handler(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
