"""Main application entry point for WaveTrace."""

import sys
import time
import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.live import Live
from rich.table import Table

from .config import WaveTraceConfig
from .models.playback import PlaybackState
from .services.recorder_service import RecorderService
from .ui.waveform_screen import WaveformScreen, sparkline

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/wavetrace.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("WaveTrace starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def cmd_record(service: RecorderService, screen: WaveformScreen, duration: float) -> int:
    result = service.start_recording()
    if not result["success"]:
        console.print(f"[bold red]Cannot start recording: {result['error']}[/]")
        return 1

    screen.reset("Recording")
    try:
        with Live(screen.render(), console=console, refresh_per_second=10) as live:
            end = time.time() + duration
            while time.time() < end:
                time.sleep(0.1)
                live.update(screen.render())
    except KeyboardInterrupt:
        pass

    recording_result = service.stop_recording()
    if not recording_result.success:
        console.print(f"[bold red]Recording failed: {recording_result.error}[/]")
        return 1

    console.print(f"Saved [bold]{recording_result.recording.name}[/] "
                  f"({len(recording_result.waveform)} waveform points)")
    for warning in recording_result.warnings:
        console.print(f"[yellow]Warning: {warning}[/]")
    return 0


def cmd_list(service: RecorderService) -> int:
    table = Table(title="Recordings", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Created")
    table.add_column("Size", justify="right")
    table.add_column("Waveform")

    for recording in service.recordings:
        created = recording.created_at
        table.add_row(
            recording.name,
            created.strftime("%Y-%m-%d %H:%M:%S") if created else "",
            f"{recording.size_bytes / 1024:.1f} KB",
            sparkline(service.waveform_store.cache_lookup(recording.path), 40),
        )
    console.print(table)
    return 0


def cmd_play(service: RecorderService, screen: WaveformScreen, name: str) -> int:
    recording = service.find_recording(name)
    if recording is None:
        console.print(f"[bold red]No recording named {name}[/]")
        return 1

    screen.reset(recording.name)
    result = service.play(recording.path)
    if not result["success"]:
        console.print(f"[bold red]Playback failed: {result['error']}[/]")
        return 1

    try:
        with Live(screen.render(), console=console, refresh_per_second=10) as live:
            while service.playback_status().state is not PlaybackState.IDLE:
                time.sleep(0.1)
                live.update(screen.render())
    except KeyboardInterrupt:
        service.stop_playback()
    return 0


def cmd_rename(service: RecorderService, name: str, new_name: str) -> int:
    recording = service.find_recording(name)
    if recording is None:
        console.print(f"[bold red]No recording named {name}[/]")
        return 1

    result = service.rename_recording(recording.path, new_name)
    if not result["success"]:
        console.print(f"[bold red]Rename failed: {result['error']}[/]")
        return 1
    console.print(f"Renamed to [bold]{Path(result['path']).name}[/]")
    for warning in result["warnings"]:
        console.print(f"[yellow]Warning: {warning}[/]")
    return 0


def cmd_delete(service: RecorderService, name: str) -> int:
    recording = service.find_recording(name)
    if recording is None:
        console.print(f"[bold red]No recording named {name}[/]")
        return 1

    result = service.delete_recording(recording.path)
    if not result["success"]:
        console.print(f"[bold red]Delete failed: {result['error']}[/]")
        return 1
    console.print(f"Deleted [bold]{recording.name}[/]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="WaveTrace - record audio with a live waveform and replay it"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: ./wavetrace.yaml or built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="WaveTrace v0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Record from the microphone")
    record.add_argument("--duration", type=float, default=10.0,
                        help="Seconds to record (default: 10, Ctrl+C stops early)")

    subparsers.add_parser("list", help="List recordings")

    play = subparsers.add_parser("play", help="Play a recording")
    play.add_argument("name")

    rename = subparsers.add_parser("rename", help="Rename a recording")
    rename.add_argument("name")
    rename.add_argument("new_name")

    delete = subparsers.add_parser("delete", help="Delete a recording")
    delete.add_argument("name")

    return parser


def main(argv=None) -> None:
    """Main entry point for WaveTrace."""
    args = build_parser().parse_args(argv)

    try:
        config = WaveTraceConfig(args.config)
        max_points = config.get_max_points()
        config.get_poll_interval()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Configuration error: {e}[/]")
        sys.exit(2)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    service = None
    screen = WaveformScreen(max_points=max_points, console=console)
    try:
        service = RecorderService(config)
        service.load_recordings()
        screen.subscribe()

        if args.command == "record":
            code = cmd_record(service, screen, args.duration)
        elif args.command == "list":
            code = cmd_list(service)
        elif args.command == "play":
            code = cmd_play(service, screen, args.name)
        elif args.command == "rename":
            code = cmd_rename(service, args.name, args.new_name)
        else:
            code = cmd_delete(service, args.name)
    except KeyboardInterrupt:
        code = 130
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/]")
        logger.error(f"Application error: {e}", exc_info=True)
        code = 1
    finally:
        screen.unsubscribe()
        if service is not None:
            service.shutdown()

    sys.exit(code)


if __name__ == "__main__":
    main()
