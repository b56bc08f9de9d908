"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    BUILD_FAILURE = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    VERSION = "1.0.0"
    DEFAULT_REPOSITORIES = [
        "https://repo.jenkins-ci.org/releases/",
        "https://repo.jenkins-ci.org/incrementals/",
    ]
    DEFAULT_BRANCH = "master"
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    POM_XML_FILE = "pom.xml"
    PLUGINS_TXT_FILE = "plugins.txt"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "INCREMENTALS_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    # Repository API constants
    GITHUB_API_BASE = "https://api.github.com"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"

    # Changelist computation
    ABBREV_LENGTH = 12
    CHANGELIST_FORMAT = "-rc%d.%s"
    EXTENSION_NAME = "git-changelist"
    EXTENSION_GROUP_ID = "io.jenkins.tools.incrementals"
    EXTENSION_ARTIFACT_ID = "git-changelist-maven-extension"
    DOT_MVN_DIR = ".mvn"
    EXTENSIONS_XML_FILE = "extensions.xml"
    MAVEN_CONFIG_FILE = "maven.config"
    INCREMENTALS_PROFILES = ["consume-incrementals", "might-produce-incrementals"]
    PROP_SET_CHANGELIST = "set.changelist"
    PROP_IGNORE_DIRT = "ignore.dirt"
    PROP_CHANGELIST_FORMAT = "changelist.format"
    PROP_CHANGELIST = "changelist"
    PROP_SCM_TAG = "scmTag"
    PROP_GITHUB_REPO = "gitHubRepo"
    ENV_CHANGE_FORK = "CHANGE_FORK"
    ENV_JOB_NAME = "JOB_NAME"

    # YAML configuration
    CONFIG_FILE_LOCATIONS = [
        "incrementals.yml",
        "~/.config/incrementals/incrementals.yml",
    ]
