"""
AX Browser - macOS accessibility tree browser

Browse an application's accessibility elements one step at a time and get
the accessor path to the element you end on, or dump the whole hierarchy
of an application to the console or a text file.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from ax_hierarchy import HierarchyDumper
from ax_nodes import ObjectNode
from ax_provider import MacAXProvider, find_app_pids, is_trusted
from gui.constants import (
    APP_NAME, APP_VERSION, BrowserConfig, browser_config_from_dict,
    load_config, logger, setup_logging,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ax-browser",
        description="Browse or dump the macOS accessibility tree of an application.",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--app", metavar="NAME",
                        help="process name (substring) or executable path of the app to open")
    target.add_argument("--pid", type=int, help="process id of the app to open")
    target.add_argument("--system-wide", action="store_true",
                        help="start at the system-wide element")
    parser.add_argument("--dump", nargs="?", const="-", metavar="FILE",
                        help="dump the hierarchy instead of browsing ('-' or no value: stdout)")
    parser.add_argument("--config", type=Path, help="path to config.json")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def resolve_root(provider: MacAXProvider, args: argparse.Namespace) -> Optional[ObjectNode]:
    """The element named on the command line, or None for the frontmost app."""
    if args.system_wide:
        return provider.system_wide()
    if args.pid is not None:
        return provider.application(args.pid)
    if args.app:
        pids = find_app_pids(args.app)
        if not pids:
            raise SystemExit(f"No running process matches {args.app!r}")
        if len(pids) > 1:
            logger.info(f"Multiple processes match {args.app!r} ({pids}); using {pids[0]}")
        return provider.application(pids[0])
    return None


def run_dump(root: ObjectNode, config: BrowserConfig, target: str) -> int:
    dumper = HierarchyDumper(
        max_depth=config.dump_max_depth,
        yield_every=config.dump_yield_every,
        skip_attributes=config.skip_attribute_markers(),
    )
    if target == "-":
        visited = dumper.dump(root)
        logger.info(f"Dumped {visited} element(s)")
        return 0
    count = asyncio.run(dumper.export_hierarchy(root, Path(target)))
    print(f"Wrote {count} line(s) to {target}")
    return 0


def run_gui(provider: MacAXProvider, config: BrowserConfig, root: Optional[ObjectNode]) -> int:
    from PyQt6.QtWidgets import QApplication
    from gui.console import BrowserConsoleWindow

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName("AXBrowser")

    window = BrowserConsoleWindow(provider, config)
    window.show()
    window.browse(root)

    exit_code = app.exec()
    logger.info(f"Application exiting (code {exit_code})")
    return exit_code


def main(argv: Optional[List[str]] = None) -> None:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    if sys.platform != "darwin":
        print("This application only runs on macOS.")
        sys.exit(1)

    raw_config = load_config(args.config)
    setup_logging(raw_config)
    config = browser_config_from_dict(raw_config)
    logger.info(f"Application starting (version {APP_VERSION})")

    if not is_trusted():
        logger.warning(
            "Accessibility access has not been granted; most attributes will be unreadable. "
            "Enable it in System Settings > Privacy & Security > Accessibility."
        )

    provider = MacAXProvider()
    root = resolve_root(provider, args)

    if args.dump:
        if root is None:
            root = provider.frontmost_application()
        if root is None:
            print("No application to dump.")
            sys.exit(1)
        sys.exit(run_dump(root, config, args.dump))

    sys.exit(run_gui(provider, config, root))


if __name__ == "__main__":
    main()
