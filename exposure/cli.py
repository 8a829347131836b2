"""exposure-planner CLI: generate plans and inspect progress."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional

from dotenv import load_dotenv

from exposure.adapters.location.static import StaticLocationProvider
from exposure.application.context import AppContext, make_app_context
from exposure.domain.enums import GenerationStatus
from exposure.domain.exceptions import DomainError
from exposure.domain.models import Coordinate
from exposure.planner.summary import format_wait_time, plan_summary
from exposure.services import target_service
from exposure.services.plan_service import auto_generate_plan
from exposure.services.progress_service import load_plan_progress

load_dotenv()


def _print_plan(ctx: AppContext, plan_id: str, use_miles: bool) -> None:
    plan = ctx.repository.get_plan(plan_id)
    if plan is None:
        print(f"plan not found: {plan_id}")
        return
    targets = ctx.repository.list_active_targets(plan_id)
    print(f"{plan.name or '(unnamed)'}  [{plan.id}]")
    print(plan_summary(targets, use_miles=use_miles))
    print("-" * 50)
    for target in targets:
        print(
            f"  {target.order_index + 1:>2}. {target.name}"
            f"  ({target.lat:.5f}, {target.lon:.5f})"
            f"  wait {format_wait_time(target.wait_time_seconds)}"
        )


def _cmd_generate(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.lat is not None and args.lon is not None:
        ctx.location_provider = StaticLocationProvider(Coordinate(lat=args.lat, lon=args.lon))
    plan_id = args.plan_id or target_service.create_plan(ctx=ctx, name=args.name or "").id
    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan_id))
    print(f"status: {outcome.status.value}  tier: {outcome.tier.value if outcome.tier else '-'}")
    if outcome.error:
        print(f"error: {outcome.error}")
    _print_plan(ctx, plan_id, args.miles)
    return 0 if outcome.status == GenerationStatus.GENERATED else 1


def _cmd_progress(ctx: AppContext, args: argparse.Namespace) -> int:
    progress = load_plan_progress(ctx=ctx, plan_id=args.plan_id)
    print(json.dumps(progress.model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0


def _cmd_show(ctx: AppContext, args: argparse.Namespace) -> int:
    _print_plan(ctx, args.plan_id, args.miles)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exposure", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="auto-generate targets around a position")
    gen.add_argument("--plan-id", default=None, help="existing plan; a new one is created when omitted")
    gen.add_argument("--name", default="", help="name for a newly created plan")
    gen.add_argument("--lat", type=float, default=None)
    gen.add_argument("--lon", type=float, default=None)
    gen.add_argument("--miles", action="store_true")
    gen.set_defaults(handler=_cmd_generate)

    prog = sub.add_parser("progress", help="attempt statistics for a plan")
    prog.add_argument("plan_id")
    prog.set_defaults(handler=_cmd_progress)

    show = sub.add_parser("show", help="print a plan and its targets")
    show.add_argument("plan_id")
    show.add_argument("--miles", action="store_true")
    show.set_defaults(handler=_cmd_show)
    return parser


def main(argv: Optional[list[str]] = None, ctx: Optional[AppContext] = None) -> int:
    args = build_parser().parse_args(argv)
    ctx = ctx or make_app_context()
    try:
        return args.handler(ctx, args)
    except DomainError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
