"""incrementals command line entry point."""

import logging
import os
import sys
from pathlib import Path

from args import parse_args
from config import ConfigError, load_settings
from constants import Constants, ExitCodes
from errors import IncrementalsError, ManifestError, TransportError
from changelist.hook import ChangelistHook, read_project
from changelist.identifier import RevisionIdentifier
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from descriptor.editor import apply_edits
from descriptor.incrementalify import incrementalify_project, reincrementalify_edits
from extensions.registry import CapabilityRegistry, RequireExtensionVersion
from manifest.update import update_plugins_txt, update_pom
from registry.maven.metadata import MavenRepositoryClient
from repository.github import GitHubClient
from versioning.models import ArtifactCoordinate
from versioning.resolver import VersionResolver

logger = logging.getLogger(__name__)


def build_resolver(settings):
    """Wire a resolver from the effective settings."""
    return VersionResolver(
        metadata_client=MavenRepositoryClient(timeout=settings.timeout),
        ancestry_client=GitHubClient(base_url=settings.github_api, timeout=settings.timeout),
        repositories=settings.repositories,
    )


def _overrides(args):
    return {
        "repositories": getattr(args, "REPOSITORIES", None),
        "branch": getattr(args, "BRANCH", None),
        "timeout": getattr(args, "TIMEOUT", None),
        "github_api": getattr(args, "GITHUB_API", None),
        "changelist_format": getattr(args, "CHANGELIST_FORMAT", None),
        "ignore_dirt": getattr(args, "IGNORE_DIRT", None),
    }


def cmd_find(args, settings):
    parts = args.COORDINATE.split(":")
    if len(parts) != 2 or not all(parts):
        raise IncrementalsError(f"Invalid Maven coordinate '{args.COORDINATE}'. Expected 'groupId:artifactId'.")
    result = build_resolver(settings).find(ArtifactCoordinate(parts[0], parts[1]), args.CURRENT_VERSION, settings.branch)
    if result is None:
        logging.info("No newer version of %s found within %s", args.COORDINATE, settings.branch)
    else:
        print(result.version)


def cmd_changelist(args, settings):
    properties = {
        Constants.PROP_SET_CHANGELIST: "true",
        Constants.PROP_IGNORE_DIRT: "true" if settings.ignore_dirt else "false",
        Constants.PROP_CHANGELIST_FORMAT: settings.changelist_format,
    }
    with CapabilityRegistry() as registry:
        hook = ChangelistHook(RevisionIdentifier(), registry)
        if args.REQUIRED_VERSION:
            RequireExtensionVersion(Constants.EXTENSION_NAME, args.REQUIRED_VERSION).enforce(registry)
        hook.after_session_start(properties, args.DIRECTORY)
        pom_path = Path(args.DIRECTORY) / Constants.POM_XML_FILE
        if pom_path.is_file():
            hook.after_projects_read(properties, [read_project(pom_path, properties)])
        else:
            logging.debug("No %s in %s, skipping the project version check", Constants.POM_XML_FILE, args.DIRECTORY)
    for name in (Constants.PROP_CHANGELIST, Constants.PROP_SCM_TAG, Constants.PROP_GITHUB_REPO):
        if name in properties:
            print(f"{name}={properties[name]}")


def cmd_update_plugins(args, settings):
    updates = update_plugins_txt(args.FILE, build_resolver(settings), settings.branch,
                                 update_nonincremental=args.UPDATE_NONINCREMENTAL)
    for update in updates:
        print(f"{update.target}: {update.old_version} -> {update.new_version}")


def cmd_update_pom(args, settings):
    updates = update_pom(args.FILE, build_resolver(settings), settings.branch,
                         update_nonincremental=not args.INCREMENTALS_ONLY)
    for update in updates:
        print(f"{update.target}: {update.old_version} -> {update.new_version}")


def _rewrite(path, edits_for):
    try:
        with open(path, "r", encoding="utf-8") as fh:
            document = fh.read()
    except OSError as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e
    updated = apply_edits(document, edits_for(document))
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(updated)
    logging.info("Updated %s", path)


def cmd_incrementalify(args, settings):
    incrementalify_project(args.FILE, MavenRepositoryClient(timeout=settings.timeout), settings.repositories)


def cmd_reincrementalify(args, settings):  # pylint: disable=unused-argument
    _rewrite(args.FILE, reincrementalify_edits)


COMMANDS = {
    "find": cmd_find,
    "changelist": cmd_changelist,
    "update-plugins": cmd_update_plugins,
    "update-pom": cmd_update_pom,
    "incrementalify": cmd_incrementalify,
    "reincrementalify": cmd_reincrementalify,
}


def run(argv=None):
    """Run one command and return its exit code."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging(getattr(args, "LOG_FILE", None))

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND)
        )

    try:
        settings = load_settings(getattr(args, "CONFIG", None), _overrides(args))
        COMMANDS[args.COMMAND](args, settings)
    except (ConfigError, ManifestError) as e:
        logging.error("%s, aborting", e)
        return ExitCodes.FILE_ERROR.value
    except OSError as e:
        logging.error("IO error: %s, aborting", e)
        return ExitCodes.FILE_ERROR.value
    except TransportError as e:
        logging.error("Connection error: %s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except IncrementalsError as e:
        logging.error("%s", e)
        return ExitCodes.BUILD_FAILURE.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.COMMAND, outcome="success")
        )
    return ExitCodes.SUCCESS.value


def main():
    """Main function of the program."""
    sys.exit(run())


if __name__ == "__main__":
    main()
