"""CLI for the maven package reaper."""

import argparse
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import NoReturn

import httpx

from .config import (
    PackageQuery,
    RegistryConfig,
    RetentionPolicy,
    VersionDeleteQuery,
    VersionQuery,
)
from .exceptions import RegistryError
from .factory import Factory
from .models.owner_category import OwnerCategory
from .models.package import DeletionResult, Package
from .models.pattern import WILDCARD
from .output import (
    PACKAGE_HEADERS,
    RESULT_HEADERS,
    VERSION_HEADERS,
    render,
)
from .services.browser import FzfSelector, Selector, choose_package

DEFAULT_CONFIG = Path("/etc/maven-reaper/config.yaml")


class _ArgumentParser(argparse.ArgumentParser):
    """Argument errors, unknown commands included, exit with status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _add_group_artifact(
    parser: argparse.ArgumentParser, *, required: bool = False
) -> None:
    nargs = None if required else "?"
    parser.add_argument(
        "group",
        nargs=nargs,
        default=WILDCARD,
        help=f"group pattern; '{WILDCARD}' matches anything",
    )
    parser.add_argument(
        "artifact",
        nargs=nargs,
        default=WILDCARD,
        help=f"artifact pattern; '{WILDCARD}' matches anything",
    )


def _add_listing_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--show-pkg-name",
        action="store_true",
        help="prefix each row with the package name",
        default=False,
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="tab-separated output without a header",
        default=False,
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = _ArgumentParser(
        prog="maven-reaper",
        description="List and delete maven packages in a package registry.",
    )
    parser.add_argument(
        "-c",
        "--config-file",
        "--file",
        type=Path,
        help=f"reaper config file (default: {DEFAULT_CONFIG}, if present)",
        default=None,
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
        default=False,
    )
    parser.add_argument(
        "-x",
        "--dry-run",
        action="store_true",
        help="Dry run only: do not delete anything",
        default=False,
    )
    parser.add_argument(
        "-o",
        "--owner",
        help="user or organization owning the packages",
        default=None,
    )
    parser.add_argument(
        "--org",
        action="store_true",
        help="the owner is an organization",
        default=False,
    )
    sub = parser.add_subparsers(
        dest="command", metavar="command", required=True
    )

    p = sub.add_parser("packages", help="list matching packages")
    _add_group_artifact(p)
    _add_listing_flags(p)

    p = sub.add_parser("versions", help="list versions of a package")
    p.add_argument("package_name", help="full package name")
    p.add_argument(
        "--version", default=WILDCARD, help="version ID (default: all)"
    )
    _add_listing_flags(p)

    p = sub.add_parser("delete", help="delete matching packages")
    _add_group_artifact(p)

    p = sub.add_parser(
        "deleteVersion",
        help=(
            "delete versions of matching packages; a package's last version"
            " is deleted by deleting the package"
        ),
    )
    _add_group_artifact(p, required=True)
    p.add_argument(
        "--version", default=WILDCARD, help="version ID (default: all)"
    )

    p = sub.add_parser(
        "clean",
        help="delete old versions of matching packages, keeping the newest",
    )
    _add_group_artifact(p)
    keep = p.add_mutually_exclusive_group()
    keep.add_argument(
        "--keep",
        type=int,
        default=None,
        help="number of newest versions to keep (default: 1)",
    )
    keep.add_argument(
        "--older-than",
        default=None,
        help="delete versions older than this (e.g. '30d')",
    )

    p = sub.add_parser("browse", help="browse versions interactively")
    p.add_argument("package_name", nargs="?", default=None)

    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> RegistryConfig:
    path = args.config_file
    if path is None and DEFAULT_CONFIG.exists():
        path = DEFAULT_CONFIG
    cfg = RegistryConfig.from_file(path) if path else RegistryConfig()

    # Override settings in config, if specified here
    update: dict[str, object] = {}
    if args.dry_run:
        update["dry_run"] = True
    if args.debug:
        update["debug"] = True
    if args.owner:
        update["owner"] = args.owner
        if not args.org and cfg.owner_category == OwnerCategory.AUTHENTICATED:
            update["owner_category"] = OwnerCategory.USER
    if args.org:
        if not (args.owner or cfg.owner):
            raise ValueError("--org needs an owner: use --owner")
        update["owner_category"] = OwnerCategory.ORG
    return cfg.model_copy(update=update)


def _print(lines: Iterable[str]) -> None:
    for line in lines:
        print(line, flush=True)


def _report_results(results: Iterable[DeletionResult]) -> bool:
    """Print each result as it arrives; return whether all succeeded."""
    ok = True
    for result in results:
        print(result, flush=True)
        ok = ok and result.success
    return ok


def _print_match(pkg: Package) -> None:
    print("\t".join(pkg.to_row()), flush=True)


def _run(
    args: argparse.Namespace,
    factory: Factory,
    selector: Selector | None = None,
) -> int:
    match args.command:
        case "packages":
            query = PackageQuery(group=args.group, artifact=args.artifact)
            pkgs = factory.create_package_resolver().resolve_packages(
                query.group, query.artifact
            )
            headers = PACKAGE_HEADERS
            rows = [x.to_row() for x in pkgs]
            if args.show_pkg_name:
                headers = ["PACKAGE NAME", *headers]
                rows = [[x.name, *x.to_row()] for x in pkgs]
            _print(render(headers, rows, raw=args.raw))
        case "versions":
            vquery = VersionQuery(
                package_name=args.package_name, version=args.version
            )
            vers = factory.create_version_resolver().resolve_versions(
                vquery.package_name, vquery.version
            )
            headers = VERSION_HEADERS
            rows = [x.to_row() for x in vers]
            if args.show_pkg_name:
                headers = ["PACKAGE NAME", *headers]
                rows = [[vquery.package_name, *x] for x in rows]
            _print(render(headers, rows, raw=args.raw))
        case "delete":
            query = PackageQuery(group=args.group, artifact=args.artifact)
            headline = "Packages to delete:"
            print(headline)
            print("-" * len(headline))
            results = factory.create_deletion_engine().delete_packages(
                query.group, query.artifact, on_match=_print_match
            )
            return 0 if _report_results(results) else 1
        case "deleteVersion":
            dquery = VersionDeleteQuery(
                group=args.group, artifact=args.artifact, version=args.version
            )
            results = factory.create_deletion_engine().delete_versions(
                dquery.group, dquery.artifact, dquery.version
            )
            return 0 if _report_results(results) else 1
        case "clean":
            query = PackageQuery(group=args.group, artifact=args.artifact)
            if args.older_than is not None:
                policy = RetentionPolicy(age=args.older_than)
            else:
                policy = RetentionPolicy(
                    number=1 if args.keep is None else args.keep
                )
            results = factory.create_deletion_engine().clean(
                policy, query.group, query.artifact
            )
            return 0 if _report_results(results) else 1
        case "browse":
            if selector is None:
                selector = FzfSelector()
            name = args.package_name
            if name is None:
                name = choose_package(
                    factory.create_package_resolver(), selector
                )
                if name is None:
                    return 0
            browser = factory.create_browser(name)
            done = browser.run(selector)
            _print(render(RESULT_HEADERS, [x.to_row() for x in done]))
            return 0 if all(x.success for x in done) else 1
        case _:
            print(f"Unknown command '{args.command}'", file=sys.stderr)
            return 1
    return 0


def main(
    argv: list[str] | None = None,
    transport: httpx.BaseTransport | None = None,
    selector: Selector | None = None,
) -> int:
    """Run one command; return the process exit status.

    The transport and selector overrides are for the test suite.
    """
    args = _parse_args(argv)
    try:
        cfg = _load_config(args)
        with Factory.standalone(cfg, transport=transport) as factory:
            return _run(args, factory, selector)
    except (RegistryError, FileNotFoundError, ValueError) as exc:
        # Includes PackageNameError and pydantic validation errors
        print(f"maven-reaper: {exc}", file=sys.stderr)
        return 1


def reap() -> None:
    """Console entry point."""
    sys.exit(main())
