"""reposync — keep a locally mirrored upstream RPM installed and current."""

__version__ = "0.1.0"
