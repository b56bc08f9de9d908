"""Argument parsing functionality for incrementals."""

import argparse
from constants import Constants


def _add_common(parser):
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML config file (default: incrementals.yml or ~/.config/incrementals/incrementals.yml)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def _add_repositories(parser):
    parser.add_argument("-r", "--repository",
                        dest="REPOSITORIES",
                        help="Maven repository URL to search; may be repeated",
                        action="append",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"HTTP timeout in seconds (default: {Constants.REQUEST_TIMEOUT})",
                        action="store",
                        type=float)


def _add_resolution(parser):
    parser.add_argument("-b", "--branch",
                        dest="BRANCH",
                        help=f"Branch to search, or forker:branch for a fork (default: {Constants.DEFAULT_BRANCH})",
                        action="store",
                        type=str)
    _add_repositories(parser)
    parser.add_argument("--github-api",
                        dest="GITHUB_API",
                        help=f"GitHub API base URL (default: {Constants.GITHUB_API_BASE})",
                        action="store",
                        type=str)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="incrementals",
        description="Incremental build versioning: changelist computation and update lookup",
        add_help=True,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {Constants.VERSION}")
    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    find = subparsers.add_parser("find", help="Find the newest version of an artifact within a branch")
    find.add_argument("COORDINATE", help="groupId:artifactId", type=str)
    find.add_argument("CURRENT_VERSION", help="Version currently in use", type=str)
    _add_resolution(find)
    _add_common(find)

    changelist = subparsers.add_parser("changelist", help="Compute the changelist of a git checkout")
    changelist.add_argument("-d", "--directory",
                            dest="DIRECTORY",
                            help="Root of the git checkout (default: current directory)",
                            action="store",
                            type=str,
                            default=".")
    changelist.add_argument("--ignore-dirt",
                            dest="IGNORE_DIRT",
                            help="Only warn about uncommitted or untracked files",
                            action="store_true",
                            default=None)
    changelist.add_argument("--format",
                            dest="CHANGELIST_FORMAT",
                            help=f"printf-style template taking the count and the hash (default: {Constants.CHANGELIST_FORMAT})",
                            action="store",
                            type=str)
    changelist.add_argument("--require-extension-version",
                            dest="REQUIRED_VERSION",
                            help="Fail unless this tool's version is in the given range (2.0.4 means 2.0.4 or newer)",
                            action="store",
                            type=str)
    _add_common(changelist)

    plugins = subparsers.add_parser("update-plugins", help="Update incremental entries of a plugins.txt file")
    plugins.add_argument("FILE", help="Path to plugins.txt", nargs="?", default=Constants.PLUGINS_TXT_FILE)
    plugins.add_argument("--update-nonincremental",
                         dest="UPDATE_NONINCREMENTAL",
                         help="Also update entries with release versions",
                         action="store_true")
    _add_resolution(plugins)
    _add_common(plugins)

    pom = subparsers.add_parser("update-pom", help="Update dependency versions of a pom.xml file")
    pom.add_argument("FILE", help="Path to pom.xml", nargs="?", default=Constants.POM_XML_FILE)
    pom.add_argument("--incrementals-only",
                     dest="INCREMENTALS_ONLY",
                     help="Only update dependencies currently on incremental versions",
                     action="store_true")
    _add_resolution(pom)
    _add_common(pom)

    incrementalify = subparsers.add_parser("incrementalify", help="Enable incremental versioning in a pom.xml and .mvn/")
    incrementalify.add_argument("FILE", help="Path to pom.xml", nargs="?", default=Constants.POM_XML_FILE)
    _add_repositories(incrementalify)
    _add_common(incrementalify)

    reincrementalify = subparsers.add_parser("reincrementalify", help="Restore incremental versioning after a release")
    reincrementalify.add_argument("FILE", help="Path to pom.xml", nargs="?", default=Constants.POM_XML_FILE)
    _add_common(reincrementalify)

    return parser.parse_args(argv)
