"""Command-line entry point for gitbar"""

import asyncio
import os
import sys

from rich.console import Console
from rich.live import Live

from gitbar.cli.args import parse_args
from gitbar.config import ConfigStore, WatchConfig
from gitbar.core import AggregationCoordinator
from gitbar.logging_config import setup_logging
from gitbar.models.repo import StatusSnapshot
from gitbar.services.display_service import DisplayService
from gitbar.utils.concurrency import get_runtime_info

console = Console()


async def refresh_once(config: WatchConfig) -> StatusSnapshot:
    """Run a single full refresh without watcher or timer."""
    coordinator = AggregationCoordinator(ConfigStore(config))
    await coordinator.refresh()
    return coordinator.snapshot


async def watch_forever(config: WatchConfig, display: DisplayService) -> None:
    """Keep the coordinator running and redraw the table on every published snapshot."""
    coordinator = AggregationCoordinator(ConfigStore(config))
    with Live(
        display.build_view(coordinator.snapshot),
        console=display.console,
        auto_refresh=False,
        transient=False,
    ) as live:

        def redraw(snapshot: StatusSnapshot) -> None:
            live.update(display.build_view(snapshot), refresh=True)

        coordinator.add_listener(redraw)
        async with coordinator:
            if coordinator.watcher.is_degraded:
                display.console.print(
                    "[yellow]ℹ File watching unavailable - relying on periodic refresh[/yellow]"
                )
            await asyncio.Event().wait()


def main(argv=None):
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)

        setup_logging(
            verbose=parsed_args.verbose, debug=parsed_args.debug, watch_mode=parsed_args.watch
        )

        config = WatchConfig(
            directories=tuple(parsed_args.directories or [os.getcwd()]),
            scan_depth=parsed_args.depth,
            refresh_interval=parsed_args.interval,
            debounce_seconds=parsed_args.debounce,
            max_concurrent_probes=parsed_args.workers,
        )

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            runtime_info = get_runtime_info(config.max_concurrent_probes)
            console.print("[yellow]Runtime Information:[/yellow]")
            console.print(f"  Python version: {runtime_info['python_version']}")
            console.print(f"  CPU count: {runtime_info['cpu_count']}")
            console.print(f"  Repositories probed at once: {runtime_info['probe_concurrency']}")
            console.print(f"  Max git processes: {runtime_info['max_git_processes']}")

            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        display = DisplayService(console=console, verbose=parsed_args.verbose)

        if parsed_args.watch:
            asyncio.run(watch_forever(config, display))
            return 0

        snapshot = asyncio.run(refresh_once(config))
        if parsed_args.json:
            display.display_json(snapshot)
        else:
            display.display_snapshot(snapshot)
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
        return 0 if parsed_args is not None and parsed_args.watch else 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
