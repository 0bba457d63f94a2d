import argparse
import json
import logging
import sys
import threading

from snapshot_scheduler.api.deps import Settings
from snapshot_scheduler.app_shell.config import validate_ops_rules
from snapshot_scheduler.app_shell.context import SchedulerContext
from snapshot_scheduler.components.registry import (
    GetScheduleInput,
    RegisterTenantInput,
    run_get_schedule,
    run_register,
)
from snapshot_scheduler.rules.loader import load_rules

logger = logging.getLogger("cli")


def get_context(settings: Settings) -> SchedulerContext:
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)

    try:
        rules = load_rules(settings.rules_path)
    except ValueError as e:
        logger.error("Invalid rules file %s: %s", settings.rules_path, e)
        sys.exit(1)

    validate_ops_rules(rules)
    return SchedulerContext.create(settings.data_dir, settings.secrets_dir, rules)


def handle_tick(ctx: SchedulerContext, args: argparse.Namespace) -> None:
    ok = ctx.on_timer()
    if ok and args.drain:
        for queue_name, results in ctx.runtime_loop().run_once().items():
            acked = sum(r.delivered for r in results if r.acked)
            print(f"{queue_name}: {len(results)} batches, {acked} messages acked")
    pending = len(ctx.publish_queue) + len(ctx.poll_queue)
    print(f"Discovery run {'succeeded' if ok else 'failed'} ({pending} messages queued).")
    if not ok:
        sys.exit(1)


def handle_register(ctx: SchedulerContext, args: argparse.Namespace) -> None:
    result = run_register(
        RegisterTenantInput(organization=args.organization, site=args.site, api_key=args.api_key),
        registry=ctx.registry,
    )
    if not result.success:
        for error in result.errors:
            logger.error("%s: %s", error.code, error.message)
        sys.exit(1)

    if result.created:
        print(f"Registered {result.tenant}.")
    else:
        print(f"{result.tenant} was already registered; credential updated.")


def handle_show_schedule(ctx: SchedulerContext, args: argparse.Namespace) -> None:
    result = run_get_schedule(
        GetScheduleInput(organization=args.organization, site=args.site),
        schedule=ctx.schedule,
    )
    if not result.success:
        for error in result.errors:
            logger.error("%s: %s", error.code, error.message)
        sys.exit(1)

    print(json.dumps(result.jobs, indent=2, sort_keys=True))


def handle_run(ctx: SchedulerContext, args: argparse.Namespace) -> None:
    from snapshot_scheduler.adapters.dev_queue import DevTimer

    interval = args.interval or ctx.rules.scheduler.timer_interval_seconds
    timer = DevTimer(ctx.on_timer, interval_seconds=interval)
    loop = ctx.runtime_loop(poll_interval_seconds=args.poll_interval)

    timer.start()
    timer.trigger_now()
    worker = threading.Thread(target=loop.run_forever, daemon=True)
    worker.start()
    print(f"Dev runtime running (timer every {interval}s). Ctrl+C to stop.")
    try:
        worker.join()
    except KeyboardInterrupt:
        print("Stopping...")
    finally:
        loop.stop()
        timer.stop()


def handle_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("snapshot_scheduler.api.main:app", host=args.host, port=args.port)


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Scheduled Snapshot Publisher CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # tick
    tick_parser = subparsers.add_parser("tick", help="Run one discovery timer invocation")
    tick_parser.add_argument(
        "--drain", action="store_true", help="Deliver messages that are already due"
    )

    # register
    register_parser = subparsers.add_parser("register", help="Register a tenant")
    register_parser.add_argument("organization")
    register_parser.add_argument("site")
    register_parser.add_argument("--api-key", required=True, help="Remote admin API key")

    # show-schedule
    show_parser = subparsers.add_parser("show-schedule", help="Print a tenant's pending jobs")
    show_parser.add_argument("organization")
    show_parser.add_argument("site")

    # run
    run_parser = subparsers.add_parser("run", help="Run the dev timer and queue consumers")
    run_parser.add_argument("--interval", type=float, help="Timer interval override (seconds)")
    run_parser.add_argument(
        "--poll-interval", type=float, default=1.0, help="Queue polling interval (seconds)"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()

    if args.command == "serve":
        handle_serve(args)
        return

    ctx = get_context(Settings())

    if args.command == "tick":
        handle_tick(ctx, args)
    elif args.command == "register":
        handle_register(ctx, args)
    elif args.command == "show-schedule":
        handle_show_schedule(ctx, args)
    elif args.command == "run":
        handle_run(ctx, args)


if __name__ == "__main__":
    main()
