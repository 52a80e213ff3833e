#!/usr/bin/env python3
'''
Copyright 2025 Aaron Vose (avose@aaronvose.net)
Licensed under the LGPL v2.1; see the file 'LICENSE' for details.
'''

import os
import sys
import pathlib
import argparse

# Put the parent of this folder on sys.path so `import twigpad` works when run from the package dir.
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from twigpad.app import main

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TwigPad outliner client")
    parser.add_argument(
        "--api-url",
        default=os.environ.get("TWIGPAD_API_URL"),
        help="Base URL of the notes API (default: $TWIGPAD_API_URL)"
    )
    parser.add_argument(
        "--page-id",
        required=True,
        help="Page whose outline is loaded"
    )
    parser.add_argument(
        "--verbosity",
        type=int, default=0,
        help="Set verbosity level (0=quiet, 1=normal, 2=verbose, 3+=debug)"
    )
    parser.add_argument(
        "--stdexp",
        action="store_true",
        help="Use standard exception handling to stdout / stderr."
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write the in-memory log to this file on exit"
    )
    parser.add_argument(
        "--gui",
        action="store_true",
        help="Open the page in an editable outline window (needs wxPython)"
    )
    return parser

def run(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.api_url:
        parser.error("--api-url is required when TWIGPAD_API_URL is not set")
    return main(api_url=args.api_url, page_id=args.page_id, verbosity=args.verbosity,
                stdexp=args.stdexp, log_file=args.log_file, gui=args.gui)

if __name__ == "__main__":
    sys.exit(run())
