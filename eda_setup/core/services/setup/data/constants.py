"""
L0 Data — Static installer data.

Package lists, repository URLs, hint variables and the OpenRAM
quick-test configuration. Pure data, no logic.
"""

from __future__ import annotations

DEFAULT_INSTALL_DIR = "~/openroad-setup"

# ── Stage names ─────────────────────────────────────────────────

STAGE_SYSTEM_PACKAGES = "system-packages"
STAGE_YOSYS = "yosys"
STAGE_OPENROAD = "openroad"
STAGE_FLOW_SCRIPTS = "flow-scripts"
STAGE_OPENRAM = "openram"

# ── Checkout directory names under the install root ─────────────

OPENROAD_DIR = "OpenROAD"
FLOW_SCRIPTS_DIR = "openroad-flow-scripts"
OPENRAM_DIR = "OpenRAM"
YOSYS_DIR = "yosys"

# ── Environment variables used as hints (cleared by --fresh) ────

HINT_VARS: tuple[str, ...] = (
    "OPENROAD_HOME",
    "OPENROAD_FLOW_HOME",
    "OPENRAM_HOME",
    "OPENRAM_TECH",
    "YOSYS_HOME",
)

# ── Debian/Ubuntu build dependencies ────────────────────────────

SYSTEM_PACKAGES: tuple[str, ...] = (
    "build-essential", "cmake", "git", "python3", "python3-pip",
    "wget", "curl", "tmux", "screen",
    "libboost-all-dev", "libgmp-dev", "libmpfr-dev", "libmpc-dev",
    "libffi-dev", "libreadline-dev", "libsqlite3-dev", "libbz2-dev",
    "libncurses-dev", "libssl-dev", "liblzma-dev", "libgdbm-dev",
    "libnss3-dev", "libfreetype6-dev", "libpng-dev", "libjpeg-dev",
    "libtiff-dev", "libwebp-dev",
    "libgstreamer1.0-dev", "libgstreamer-plugins-base1.0-dev",
    "libgtk-3-dev", "libhdf5-dev",
    "python3-pyqt5", "libblas-dev", "liblapack-dev",
    "gfortran", "libopenblas-dev", "ruby",
    "libyaml-cpp-dev",
    # yosys from source
    "bison", "flex", "tcl-dev", "libfl-dev", "pkg-config",
)

# ── Git sources ─────────────────────────────────────────────────

DEFAULT_REPOSITORIES: dict[str, str] = {
    STAGE_OPENROAD: "https://github.com/The-OpenROAD-Project/OpenROAD.git",
    STAGE_FLOW_SCRIPTS: "https://github.com/The-OpenROAD-Project/OpenROAD-flow-scripts.git",
    STAGE_OPENRAM: "https://github.com/VLSIDA/OpenRAM.git",
    STAGE_YOSYS: "https://github.com/YosysHQ/yosys.git",
}

# ── Version gate ────────────────────────────────────────────────

YOSYS_MIN_VERSION = "0.58"

# Only system-provided copies are eligible for reuse
SYSTEM_BIN_DIRS: tuple[str, ...] = ("/usr/local/bin", "/usr/bin", "/bin")

# ── Launcher ────────────────────────────────────────────────────

JOB_SESSION_PREFIX = "openram_"
ENV_SCRIPT_NAME = "setup_environment.sh"
LAUNCHER_SCRIPT_NAME = "run_openram.sh"
README_NAME = "README.md"

# ── OpenRAM self-test ───────────────────────────────────────────

OPENRAM_TEST_TIMEOUT = 300
OPENRAM_QUICK_TEST = """\
num_rw_ports    = 1
num_r_ports     = 0
num_w_ports     = 0
word_size       = 8
num_words       = 16
num_banks       = 1
words_per_row   = 4
tech_name       = "scn4m_subm"
process_corners = ["TT"]
supply_voltages = [3.3]
temperatures    = [25]
route_supplies  = False
check_lvsdrc    = False
output_path     = "quick_test"
output_name     = "quick_test"
instance_name   = "quick_test"
"""

# ── Variants recorded per stage ─────────────────────────────────

VARIANT_SYSTEM = "system"
VARIANT_SOURCE = "source"
