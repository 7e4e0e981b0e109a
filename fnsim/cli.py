#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse

from fnsim.config import FnsimOptions
from fnsim.lib.runners import run_default_mode
from fnsim.logger import LOG


def build_args():
    """
    Constructs command line arguments for the fnsim tool
    """
    parser = build_parser()
    return parser.parse_args()


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fnsim",
        description="Generate similarity search features from disassembled function flowgraphs.",
    )
    parser.add_argument(
        "-i",
        "--src",
        dest="src_files",
        action="extend",
        default=[],
        nargs="+",
        required=True,
        help="Flowgraph JSON files or directories containing them.",
    )
    parser.add_argument(
        "-o",
        "--reports",
        dest="reports_dir",
        default="",
        help="Export the features of every function as JSON into this directory.",
    )
    parser.add_argument(
        "--disassembly",
        action="store_true",
        default=False,
        dest="show_disassembly",
        help="Print the disassembly of every function.",
    )
    parser.add_argument(
        "--no-summary",
        action="store_true",
        default=False,
        dest="no_summary",
        help="Do not print the feature summary table.",
    )
    parser.add_argument(
        "--no-error",
        action="store_true",
        default=False,
        dest="noerror",
        help="Do not exit with an error code when a flowgraph cannot be parsed.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        dest="quiet_mode",
        help="Disable logging and progress bars.",
    )
    return parser


def handle_args(args=None):
    """Handles the command-line arguments.

    Returns:
        FnsimOptions: A class containing the parsed command-line arguments
    """
    if args is None:
        args = build_args()
    return FnsimOptions(
        src_files=args.src_files,
        reports_dir=args.reports_dir,
        show_disassembly=args.show_disassembly,
        show_features=not args.no_summary,
        export_features=bool(args.reports_dir),
        quiet_mode=args.quiet_mode,
        no_error=args.noerror,
    )


def main():
    """Main function of the fnsim tool"""
    fnsim_options = handle_args()
    if fnsim_options.quiet_mode:
        LOG.disabled = True
    run_default_mode(fnsim_options)


if __name__ == "__main__":
    main()
