"""CLI entry point for File Finder."""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config.parser import ConfigurationError, load_config
from .errors import FinderError
from .models.config import SYSTEM_EXCLUDE_DIRS, SearchConfig
from .models.search_query import SearchQuery
from .orchestrator import SearchOrchestrator
from .output import OUTPUT_FORMATS, render_table, write_results
from .tools.progress import LoggingProgressReporter


LOG_FILE = "file_finder.log"

logger = logging.getLogger("filefinder")

EPILOG = """examples:
  filefinder --rebuild-index --global
  filefinder --keyword flag --global
  filefinder --time 2024-03-20 --dir /var/log
  filefinder --keyword conf --dir /etc --types conf,cfg,ini
  filefinder --keyword ERROR --mode content --context 1
  filefinder --perm rw --dir /path/to/search

notes:
  the index is rebuilt on first use and flagged stale after 30 minutes;
  use --types and --size to narrow large searches.
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="filefinder",
        description="Find files by name, content, permission or modification time.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    criteria = parser.add_argument_group("search criteria")
    criteria.add_argument("--keyword", help="match file names (and/or contents) containing this text")
    criteria.add_argument("--perm", choices=["r", "w", "rw"], help="files with this permission for everyone")
    criteria.add_argument("--time", dest="modified_after", metavar="YYYY-MM-DD",
                          help="files modified after this date")

    scope = parser.add_argument_group("search scope")
    scope.add_argument("--dir", dest="start_dir", help="directory to start from (default: .)")
    scope.add_argument("--depth", dest="max_depth", type=int, help="maximum directory depth (-1 = unlimited)")
    scope.add_argument("--global", dest="global_search", action="store_true",
                       help="search from the filesystem root with a fresh index")

    filters = parser.add_argument_group("filters")
    filters.add_argument("--types", dest="file_types", help="comma-separated extensions, e.g. txt,log")
    filters.add_argument("--exclude", dest="exclude_dirs", help="comma-separated path fragments to skip")
    filters.add_argument("--size", dest="size_limit", type=int, help="skip files larger than this many bytes")
    filters.add_argument("--include-dirs", action="store_true", help="allow directories in name results")

    matching = parser.add_argument_group("keyword matching")
    matching.add_argument("--mode", dest="search_mode", choices=["filename", "content", "both"],
                          help="what the keyword is matched against")
    matching.add_argument("--context", dest="context_lines", type=int, help="context lines around content matches")
    matching.add_argument("--case-sensitive", action="store_true", help="case-sensitive content matching")
    matching.add_argument("--max-content-size", type=int, help="largest file searched by content, in bytes")

    performance = parser.add_argument_group("performance")
    performance.add_argument("--workers", type=int, help="content scan worker threads (default: 5)")
    performance.add_argument("--no-concurrent", dest="concurrent", action="store_false", default=None,
                             help="scan file contents on one thread")

    misc = parser.add_argument_group("other")
    misc.add_argument("--rebuild-index", action="store_true", help="rebuild the file index and exit")
    misc.add_argument("--config", help="YAML configuration file")
    misc.add_argument("--output", help="write results to this file")
    misc.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS, default="txt",
                      help="output file format (default: txt)")
    misc.add_argument("--log", action="store_true", help=f"also log to {LOG_FILE}")
    misc.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    return parser


def configure_logging(verbose: bool = False, log_to_file: bool = False) -> None:
    """Configure stderr logging and the optional log file."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    if log_to_file:
        handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s [%(levelname)s] %(message)s"))
        logging.getLogger().addHandler(handler)


def filesystem_roots() -> List[str]:
    """Get the roots searched by --global: every drive on Windows, / elsewhere."""
    if os.name != "nt":
        return [os.sep]
    drives = [f"{letter}:\\" for letter in "ABCDEFGHIJKLMNOPQRSTUVWXYZ"]
    return [drive for drive in drives if os.path.exists(drive)]


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect config fields set on the command line."""
    overrides = {
        'start_dir': args.start_dir,
        'max_depth': args.max_depth,
        'size_limit': args.size_limit,
        'file_types': args.file_types,
        'exclude_dirs': args.exclude_dirs,
        'search_mode': args.search_mode,
        'context_lines': args.context_lines,
        'max_content_size': args.max_content_size,
        'workers': args.workers,
        'concurrent': args.concurrent,
    }
    for flag in ('global_search', 'include_dirs', 'case_sensitive'):
        if getattr(args, flag):
            overrides[flag] = True
    return {key: value for key, value in overrides.items() if value is not None}


def build_config(args: argparse.Namespace) -> SearchConfig:
    """Load the file configuration and apply command-line overrides."""
    result = load_config(args.config)
    for warning in result.warnings:
        logger.debug(f"Configuration: {warning}")
    config = result.config.with_overrides(**config_overrides(args))
    exclude_dirs = list(config.exclude_dirs)
    exclude_dirs.extend(d for d in SYSTEM_EXCLUDE_DIRS if d not in exclude_dirs)
    return config.with_overrides(exclude_dirs=exclude_dirs)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.keyword or args.perm or args.modified_after or args.rebuild_index):
        parser.print_help()
        print("\nerror: specify at least one of --keyword, --perm or --time", file=sys.stderr)
        return 1

    configure_logging(args.verbose, args.log)

    try:
        config = build_config(args)
    except (ConfigurationError, ValidationError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    logger.debug(f"Effective configuration: {config}")

    roots = (filesystem_roots() if config.global_search else []) or [config.start_dir]
    orchestrator = SearchOrchestrator(progress=LoggingProgressReporter())

    try:
        if args.rebuild_index:
            for root in roots:
                orchestrator.rebuild_index(config.with_overrides(start_dir=root))
            return 0

        query = SearchQuery(keyword=args.keyword, permission=args.perm,
                            modified_after=args.modified_after)
        results = None
        for root in roots:
            root_results = orchestrator.run(query, config.with_overrides(start_dir=root))
            if results is None:
                results = root_results
            else:
                results.matches.update(root_results.matches)
                results.errors.extend(root_results.errors)
    except ValidationError as e:
        logger.error(f"Invalid search criteria: {e}")
        return 1
    except FinderError as e:
        logger.error(f"Search failed: {e}")
        return 1

    print(render_table(results))
    if args.output:
        write_results(results, args.output, args.output_format)
        logger.info(f"Results written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
