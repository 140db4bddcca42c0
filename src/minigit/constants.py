"""Constants used throughout minigit."""

# Directory names
GIT_DIR = ".git"
OBJECTS_DIR = "objects"
REFS_DIR = "refs"
HEADS_DIR = "heads"

# File names
HEAD_FILE = "HEAD"

# Branch created by `init`
DEFAULT_BRANCH = "master"

# Symbolic reference prefix stored in HEAD
SYMREF_PREFIX = "ref: "

# Hash algorithm
HASH_ALGORITHM = "sha1"
HASH_LENGTH = 40  # hex characters
DIGEST_SIZE = 20  # raw bytes
MIN_ABBREV_LENGTH = 4

# zlib compression level for stored objects
COMPRESSION_LEVEL = 1

# Permissions of published object files
OBJECT_FILE_MODE = 0o444

# Identity environment variables
ENV_AUTHOR_NAME = "GIT_AUTHOR_NAME"
ENV_AUTHOR_EMAIL = "GIT_AUTHOR_EMAIL"
ENV_COMMITTER_NAME = "GIT_COMMITTER_NAME"
ENV_COMMITTER_EMAIL = "GIT_COMMITTER_EMAIL"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
