"""eda-setup — idempotent installer for the OpenROAD / OpenRAM toolchain."""

__version__ = "0.1.0"
