"""Entry point: python -m ghflow.dashboard"""

import argparse
import logging
import os
import sys

from ..config import ConfigStore, get_log_path
from ..exceptions import ConfigError
from ..github import DemoGitHubClient, GitHubClient, is_authenticated, is_gh_installed
from ..repo_utils import is_git_repo, resolve_repo
from .app import DEFAULT_REFRESH_SECONDS, GhflowDashboard
from .dashboard import DashboardModel
from .data import DataManager


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ghflow",
        description="Terminal dashboard for GitHub Actions workflow runs",
    )
    parser.add_argument(
        "--refresh",
        type=float,
        default=DEFAULT_REFRESH_SECONDS,
        help=f"Seconds between automatic refreshes (default: {DEFAULT_REFRESH_SECONDS:g})",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Show generated sample runs instead of calling GitHub",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Write debug output to the log file",
    )
    args = parser.parse_args(argv)
    if args.refresh <= 0:
        parser.error("--refresh must be positive")
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    log_path = get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path),
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("ghflow")

    if args.demo:
        client = DemoGitHubClient()
    else:
        if not is_gh_installed():
            print("Error: the GitHub CLI (gh) is not installed.", file=sys.stderr)
            print("Install it from https://cli.github.com/", file=sys.stderr)
            sys.exit(1)
        if not is_authenticated():
            print("Error: gh is not authenticated. Run: gh auth login", file=sys.stderr)
            sys.exit(1)
        client = GitHubClient()

    store = ConfigStore()
    try:
        config = store.load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    model = DashboardModel(
        config,
        store,
        resolve_repo=resolve_repo,
        is_repo=is_git_repo,
        cwd=os.getcwd(),
    )

    try:
        app = GhflowDashboard(model, DataManager(client), refresh_interval=args.refresh)
        app.run()
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Dashboard crashed")
        raise


if __name__ == "__main__":
    main()
