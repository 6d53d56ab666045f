"""Names, environment variables and file layout constants."""

APP_NAME = "meowda"

# Environment variables
LOCAL_VENV_DIR_ENV = "MEOWDA_LOCAL_VENV_DIR"
GLOBAL_VENV_DIR_ENV = "MEOWDA_GLOBAL_VENV_DIR"
ACTIVE_VENV_ENV = "VIRTUAL_ENV"
LOG_LEVEL_ENV = "MEOWDA_LOG_LEVEL"

# Store layout
LOCAL_STORE_DIR = ".meowda"
VENVS_DIR = "venvs"
MARKER_FILE = ".gitignore"
MARKER_CONTENT = "*"
LOCK_FILE = ".lock"
LOCK_RESOURCE = "venv_store"

# Provisioning tool
UV_BINARY = "uv"
UV_INSTALL_HINT = (
    "uv is not available, please install it first. "
    "See https://docs.astral.sh/uv/getting-started/installation/"
)

ACTIVATION_HINT = (
    "Please run `meowda init <shell_profile>` to set up the activation script."
)
