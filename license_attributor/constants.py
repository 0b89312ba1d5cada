"""Constants for license-attributor."""

# Exit codes
EXIT_SUCCESS = 0  # Report generated, no blocking issues
EXIT_ISSUES = 1  # Unresolved or unsatisfiable crates with --fail
EXIT_ERROR = 2  # Run failed due to a fatal error

# Minimum similarity for a local text match to count as evidence
DEFAULT_CONFIDENCE_THRESHOLD = 0.8

# Remote harvest defaults
DEFAULT_HARVEST_TIMEOUT_SECS = 30.0
DEFAULT_MAX_CONCURRENT_REQUESTS = 8

# Sentinel the harvesting service uses when it could not determine a license
NOASSERTION = "NOASSERTION"

# Packaged crates record the commit they were built from in this file
VCS_INFO_FILE = ".cargo_vcs_info.json"

# Upper bound on dependency paths recorded per node
MAX_PATHS_PER_NODE = 16

# Files with these extensions are never scanned for license text
BINARY_EXTENSIONS = frozenset(
    {
        # Binary artifacts
        "a", "o", "lib", "obj", "pyc", "dll", "exe", "so", "dylib", "rlib",
        # Binary sources
        "ttf", "otf", "ico", "dfa", "rc",
        # Test data
        "png", "spv", "vert", "wasm", "zip", "gz", "wav", "jpg", "jpeg", "bin",
        "zlib", "p8", "deflate", "xz", "zst", "tar",
        # Misc binary
        "der", "metallib", "pdf",
    }
)

LEGAL_DISCLAIMER = (
    "This report provides license information for informational purposes only. "
    "It does not constitute legal advice."
)

LEGAL_DISCLAIMER_SHORT = "This report is not legal advice."
