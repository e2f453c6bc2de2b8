import argparse
import json
import logging
import sys
from pathlib import Path

from otp_packager.core.errors import PackagingError
from otp_packager.core.packaging.pipeline import Packager
from otp_packager.core.project.layout import ProjectLayout
from otp_packager.core.project.loader import load_project
from otp_packager.core.settings import PackagerSettings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Validate and package an OTP application.")
    p.add_argument("project_dir", nargs="?", default=".", help="directory with the project file, ebin/ and target/")
    p.add_argument("--validate-only", action="store_true", help="stop after the descriptor checks")
    p.add_argument("--node", default=None, help="Erlang node to run scripts on (default: OTPPKG_NODE)")
    p.add_argument("--json", action="store_true", help="print the report as JSON")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    settings = PackagerSettings.from_env()
    base = Path(args.project_dir)
    try:
        project = load_project(base)
        packager = Packager(settings.build_engine(), node=args.node or settings.node)
        layout = ProjectLayout(base_dir=base, project=project)
        report = packager.validate(layout) if args.validate_only else packager.package(layout)
    except PackagingError as e:
        print(f"BUILD FAILURE: {e}", file=sys.stderr)
        for line in e.details:
            print(f"  {line}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    elif report.archive:
        print(f"Release archive: {report.archive}")
        print(f"SHA256: {(report.verification or {}).get('artifact_sha256')}")
    else:
        print(f"{report.release_name}: descriptor is valid")
    return 0


if __name__ == "__main__":
    sys.exit(main())
