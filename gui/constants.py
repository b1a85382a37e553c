"""
Application constants, logging setup, and configuration loading.
"""
import json
import logging
import logging.handlers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from version import __version__

# --- Configuration Constants ---
APP_NAME = "AX Browser"
APP_VERSION = __version__
APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "AXBrowser"
CONFIG_PATH = APP_SUPPORT_DIR / "config.json"
LOG_DIR = APP_SUPPORT_DIR / ".logs"
DEFAULT_DUMP_DIR = Path.home() / "Documents" / "AXBrowserDumps"  # suggestion only (shown in file dialogs)

# Modifier names accepted in config.json -> label shown in choice subtext
MODIFIER_LABELS = {
    "cmd": "⌘",
    "alt": "⌥",
    "ctrl": "⌃",
    "shift": "⇧",
}

THEME_MODES = ("system", "light", "dark")

# --- Logging Setup ---
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "NONE": None,  # Disables logging entirely
}

# Create logger
logger = logging.getLogger("AXBrowser")
core_logger = logging.getLogger("ax_browser")

# Track current log file path (set by setup_logging)
current_log_file_path: Optional[Path] = None


def setup_logging(config: Optional[Dict] = None):
    """Configure logging based on config file settings."""
    global current_log_file_path

    log_cfg = config.get("logging", {}) if config else {}
    log_level_str = log_cfg.get("level", "INFO").upper()
    log_level = LOG_LEVELS.get(log_level_str, logging.INFO)
    log_to_file = log_cfg.get("log_to_file", True)
    log_file_name = log_cfg.get("log_file_name", "ax_browser.log")

    # Clear existing handlers
    logger.handlers.clear()
    core_logger.handlers.clear()

    # If logging is disabled (NONE), set to highest level and skip handlers
    if log_level is None:
        logger.setLevel(logging.CRITICAL + 10)
        core_logger.setLevel(logging.CRITICAL + 10)
        current_log_file_path = None
        return

    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    core_logger.addHandler(console_handler)

    # File handler (rotating: 2 MB max, keep 3 backups)
    if log_to_file:
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            current_log_file_path = LOG_DIR / log_file_name
            file_handler = logging.handlers.RotatingFileHandler(
                current_log_file_path,
                maxBytes=2 * 1024 * 1024,  # 2 MB
                backupCount=3,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            core_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Failed to create log file: {e}")
            current_log_file_path = None
    else:
        current_log_file_path = None

    logger.setLevel(log_level)
    core_logger.setLevel(log_level)
    # Handlers are attached to both loggers; don't double-print via root
    logger.propagate = False
    core_logger.propagate = False


# Initial basic setup (will be reconfigured after config is loaded)
logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger.setLevel(logging.INFO)


# --- Browser configuration ---

@dataclass
class BrowserConfig:
    """Settings from the ``browser`` and ``dump`` sections of config.json."""
    root_token: str = "obj"
    modifier: str = "cmd"
    search_sub_text: bool = True
    debug: bool = False
    theme: str = "system"  # "system", "light" or "dark"
    dump_max_depth: int = 200
    dump_yield_every: int = 25
    dump_skip_attributes: List[str] = field(
        default_factory=lambda: ["AXParent", "AXTopLevelUIElement"]
    )

    @property
    def modifier_label(self) -> str:
        return MODIFIER_LABELS.get(self.modifier, self.modifier)

    def skip_attribute_markers(self) -> Dict[str, str]:
        """Attribute -> marker text used by the hierarchy dump."""
        markers = {}
        for name in self.dump_skip_attributes:
            short = name[2:] if name.startswith("AX") else name
            markers[name] = f"<{short[:1].lower()}{short[1:]}>"
        return markers


def browser_config_from_dict(raw: Optional[Dict[str, Any]]) -> BrowserConfig:
    """Build a BrowserConfig from a parsed config.json (missing keys keep defaults)."""
    raw = raw or {}
    browser = raw.get("browser", {})
    dump = raw.get("dump", {})
    defaults = BrowserConfig()
    modifier = str(browser.get("modifier", defaults.modifier)).lower()
    if modifier not in MODIFIER_LABELS:
        logger.warning(f"Config: unknown modifier {modifier!r}, using 'cmd'")
        modifier = "cmd"
    theme = str(browser.get("theme", defaults.theme)).lower()
    if theme not in THEME_MODES:
        logger.warning(f"Config: unknown theme {theme!r}, using 'system'")
        theme = "system"
    return BrowserConfig(
        root_token=browser.get("root_token", defaults.root_token),
        modifier=modifier,
        search_sub_text=bool(browser.get("search_sub_text", defaults.search_sub_text)),
        debug=bool(browser.get("debug", defaults.debug)),
        theme=theme,
        dump_max_depth=int(dump.get("max_depth", defaults.dump_max_depth)),
        dump_yield_every=int(dump.get("yield_every", defaults.dump_yield_every)),
        dump_skip_attributes=list(dump.get("skip_attributes", defaults.dump_skip_attributes)),
    )


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read config.json; a missing file yields an empty config (all defaults)."""
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        logger.info(f"Config: {config_path} not found, using defaults")
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Config: failed to load {config_path}: {e}")
        return {}
    if not isinstance(config, dict):
        logger.error(f"Config: {config_path} must contain a JSON object")
        return {}
    return config
